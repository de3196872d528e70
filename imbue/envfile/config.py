from collections.abc import Mapping
from pathlib import Path
from typing import Final

from pydantic import ValidationError

from imbue.envfile.data_types import EnvFileConfig
from imbue.envfile.errors import ConfigError

ENV_FILE_PATH_VAR: Final[str] = "ENVFILE_PATH"
LOG_LEVEL_VAR: Final[str] = "ENVFILE_LOG_LEVEL"
OUTPUT_FORMAT_VAR: Final[str] = "ENVFILE_FORMAT"


def load_config(environ: Mapping[str, str]) -> EnvFileConfig:
    """Build the configuration from ENVFILE_* environment variables.

    Unset or empty variables fall back to the model defaults. Enum values are matched
    case-insensitively.
    """
    fields: dict[str, object] = {}
    path = environ.get(ENV_FILE_PATH_VAR, "")
    if path:
        fields["env_file_path"] = Path(path)
    log_level = environ.get(LOG_LEVEL_VAR, "")
    if log_level:
        fields["log_level"] = log_level.upper()
    output_format = environ.get(OUTPUT_FORMAT_VAR, "")
    if output_format:
        fields["output_format"] = output_format.upper()

    try:
        return EnvFileConfig.model_validate(fields)
    except ValidationError as e:
        raise ConfigError(f"Invalid envfile configuration in environment: {e}") from e
