"""Error hierarchy for the Aurion client.

Every structural surprise coming back from the portal is reported as one of
these. None of them is retried inside the client: a markup change or a wrong
password will not fix itself on a second attempt. Network failures are not
wrapped at all, they surface as the ``requests`` exception that caused them so
callers can decide on their own retry policy.

Example usage with tenacity at the caller level:
    @retry(retry=retry_if_exception_type(requests.ConnectionError), stop=stop_after_attempt(3))
    def fetch():
        ...
"""


class AurionError(Exception):
    """Base exception for all Aurion client errors."""

    pass


class AuthenticationError(AurionError):
    """Login was refused - the portal did not answer with a redirect.

    Usually wrong credentials. Terminal for the session.
    """

    pass


class ProtocolFormatError(AurionError):
    """An expected delimiter, marker or attribute is missing from a response.

    Means the portal markup changed (or the request was rejected in a way the
    portal does not signal explicitly).
    """

    pass


class PreconditionError(AurionError):
    """Operation invoked in a state it does not support.

    Examples: unknown menu node, non-leaf node where a leaf is required,
    missing session token.
    """

    pass


class ParseError(AurionError):
    """A scraped value could not be turned into a domain record."""

    pass


class TitleParseError(ParseError):
    """Event title does not follow the recognized grammar."""

    pass


class MalformedTitleError(TitleParseError):
    """Title has the right prefix but not enough ``" - "`` segments."""

    pass


class UnrecognizedTitleFormatError(TitleParseError):
    """Title does not start with a known time-range prefix."""

    pass


class UnsupportedTitleVariantError(TitleParseError):
    """Title uses the ``"12h00 - 13h00 - ..."`` variant, which is not handled."""

    pass


class EventConversionError(ParseError):
    """A raw schedule record could not be converted to an Event.

    Carries the position and wire id of the failing record so that the whole
    batch can be rejected with a useful message.
    """

    def __init__(self, index: int, record_id: str | None, reason: str) -> None:
        self.index = index
        self.record_id = record_id
        self.reason = reason
        super().__init__(
            f"Schedule record #{index} (id={record_id!r}) could not be converted: {reason}"
        )
