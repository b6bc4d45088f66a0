"""Default settings for flow-controller.

Maps to keys in config.example.yaml. Override via config.local.yaml or
the user config file.
"""

from pathlib import Path

from platformdirs import user_config_dir

# Platform-appropriate directories (resolved by platformdirs)
config_dir = Path(user_config_dir("flow-controller"))

# Engine defaults
engine_base_url = "http://localhost:8080/nifi-api"
engine_timeout = 30.0

# Server defaults
server_host = "127.0.0.1"
server_port = 9848

# Logging defaults
log_level = "INFO"
