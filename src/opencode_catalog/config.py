"""Configuration loading for opencode-catalog."""
import tomllib
from pathlib import Path

DEFAULT_CONFIG = {
    "catalog": {
        "opencode_dir": ".opencode",
        "output_file": "opencode-catalog.json",
        "recurse_skills": False,
    },
    "install": {
        "repo_url": "https://github.com/the-perfect-developer/opencode-base-collection",
        "branch": "main",
        "timeout": 30.0,
    },
}

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "opencode-catalog" / "config.toml"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> dict:
    """Load config from TOML file, falling back to defaults."""
    config = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}

    if config_path.exists():
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
        for section in config:
            if section in user_config:
                config[section].update(user_config[section])

    return config
