from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DELIMITER_CHOICES = (",", ";", "\t", "|")


class Settings(BaseSettings):
    """
    Application settings managed via Pydantic Settings.
    Reads variables from environment and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # --- Application Meta ---
    APP_NAME: str = "Tessera"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    # --- Server Configuration ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # --- Data Ingestion Limits ---
    MAX_UPLOAD_SIZE_MB: int = 10

    # --- Editing Behaviour ---
    CSV_DELIMITER: str = Field(",", description="Delimiter used when exporting CSV")
    TRIM_WHITESPACE: bool = True
    ARRAY_DISPLAY_MULTILINE: bool = True
    JSON_VALIDATION_DELAY_MS: int = 400
    DIFF_FLOAT_PRECISION: int = 6
    SAMPLE_VALUE_LIMIT: int = 5

    @field_validator("CSV_DELIMITER")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """
        Accepts the raw delimiter character or a readable alias
        ("comma", "semicolon", "tab", "pipe").
        """
        aliases = {"comma": ",", "semicolon": ";", "tab": "\t", "pipe": "|"}
        v = aliases.get(v.lower(), v)
        if v not in DELIMITER_CHOICES:
            raise ValueError(f"Unsupported delimiter {v!r}; expected one of {DELIMITER_CHOICES}")
        return v

    @field_validator("JSON_VALIDATION_DELAY_MS", "SAMPLE_VALUE_LIMIT", "DIFF_FLOAT_PRECISION")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Value must be zero or positive.")
        return v


settings = Settings()
