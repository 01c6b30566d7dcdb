"""Static settings shared by the vault, the stores and the coordinator."""

# Supported time-to-live values, in milliseconds.
EXPIRATION_OPTIONS: dict[int, str] = {
    60_000: "1 minute",
    3_600_000: "1 hour",
    86_400_000: "1 day",
    604_800_000: "1 week",
}
DEFAULT_EXPIRATION = 86_400_000

MAX_MESSAGE_LENGTH = 10_000
MIN_PASSWORD_LENGTH = 4

SECRET_PATH = "/secret/"
LOGGER_NAME = "whisper.vault"
