"""Client configuration loaded from environment variables.

The ids below are specific to one Aurion installation (they are the menu ids
the portal assigns to the "Scolarité" entry, the personal planning entry and
the groups planning entry). The defaults match ISEN Ouest.
"""

from datetime import datetime

from pydantic import Field
from pydantic_settings import BaseSettings


class AurionConfig(BaseSettings):
    """Aurion client configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Portal settings (JSF application, no API exists)
    aurion_url: str = Field(
        default="https://web.isen-ouest.fr/webAurion",
        description="Aurion service URL (without trailing slash)",
    )
    aurion_user: str = Field(
        default="",
        description="Aurion username",
    )
    aurion_pass: str = Field(
        default="",
        description="Aurion password",
    )

    # Menu ids of the installation
    language_code: int = Field(
        default=275805,
        description="Aurion language code",
    )
    schooling_id: str = Field(
        default="submenu_291906",
        description="Menu id of the schooling root node",
    )
    user_planning_id: str = Field(
        default="1_3",
        description="Menu id of the personal planning entry",
    )
    groups_planning_id: str = Field(
        default="submenu_299102",
        description="Menu id of the groups planning root node",
    )

    # Schedule range (defaults to the current school year when unset)
    schedule_start: datetime | None = Field(
        default=None,
        description="Start of the schedule range",
    )
    schedule_end: datetime | None = Field(
        default=None,
        description="End of the schedule range",
    )

    # HTTP settings
    request_timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
    )
    retry_attempts: int = Field(
        default=3,
        description="Attempts for a whole CLI run when the network fails",
    )
    retry_wait_seconds: float = Field(
        default=5.0,
        description="Wait between CLI retry attempts",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: AurionConfig | None = None


def get_config() -> AurionConfig:
    """Get the client configuration singleton.

    Returns:
        AurionConfig: Client configuration instance
    """
    global _config
    if _config is None:
        _config = AurionConfig()
    return _config
