import configparser
import os

# Default values
DEFAULTS = {
    "catalog": {
        "repository": "quay.io/lvh-images/kernel-images",
    },
    "registry": {
        "pageSize": "100",
        "pageCrawlLimit": "1000",
        "timeout": "30",
    },
    "logging": {
        "level": "WARNING",
        "file": "",
    },
    "registryAuth": {
        "enabled": "false",
        "credentialsFile": "~/.config/kcatalog/registry-credentials.json",
    },
}

DEFAULT_CONFIG_PATH = "~/.config/kcatalog/kcatalog.cfg"

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigNamespace:
    """
    A namespace wrapper for configuration sections that provides automatic type casting.

    Values are stored as strings (as read by configparser) and cast to bool, int
    or float on attribute access. Anything that does not look like one of those
    is returned unchanged.
    """

    def __init__(self, section: str, values: dict):
        self._section = section
        self._values = values

    def auto_cast(self, value):
        """
        Automatically cast a string value to the appropriate Python type.

        Parameters:
            value: The value to cast

        Returns:
            The casted value (bool, int, float, or str)
        """
        if value is None:
            return None

        if isinstance(value, str):
            if value.lower() in ("true", "false"):
                return value.lower() == "true"

        if isinstance(value, str) and value.isdigit():
            return int(value)

        try:
            return float(value)
        except (ValueError, TypeError):
            pass

        return value

    def __getattr__(self, key):
        if key.startswith("_"):
            raise AttributeError(key)
        default = DEFAULTS.get(self._section, {}).get(key)
        value = self._values.get(key)
        if value is None:
            value = default
        # keys with a textual default (repository, paths) stay strings
        if default is not None and isinstance(self.auto_cast(default), str):
            return value
        return self.auto_cast(value)


class Config:
    """
    Main configuration manager for kcatalog.

    Reads an INI file, merges it over DEFAULTS and validates the result.
    Sections are available as attributes, e.g. ``config.registry.pageSize``.
    """

    def __init__(self, config_path: str = None):
        """
        Initialize the configuration manager.

        Parameters:
            config_path (str): Path to the configuration file. Falls back to the
                               KCATALOG_CONFIG environment variable, then to
                               DEFAULT_CONFIG_PATH.
        """
        if config_path is None:
            config_path = os.environ.get("KCATALOG_CONFIG", DEFAULT_CONFIG_PATH)
        self.config_path = os.path.expanduser(config_path)
        self.load_config()

    def load_config(self):
        """
        Load configuration from file.

        A missing file is not an error: configparser skips it and only the
        defaults are used.
        """
        parser = configparser.ConfigParser()
        parser.optionxform = lambda optionstr: str(optionstr)  # disables lowercasing of keys
        parser.read(self.config_path)
        self._namespaces = {}

        for section in set(DEFAULTS.keys()).union(parser.sections()):
            values = dict(DEFAULTS.get(section, {}))
            if parser.has_section(section):
                values.update(parser[section])
            self._namespaces[section] = ConfigNamespace(section, values)

        self.validate_config()

    def validate_config(self):
        """
        Validate configuration structure and values.

        Raises ValueError listing every problem found.
        """
        errors = []

        required_sections = ["catalog", "registry", "logging"]
        for section in required_sections:
            if section not in self._namespaces:
                errors.append(f"Missing required section: [{section}]")

        if "catalog" in self._namespaces:
            repository = self._namespaces["catalog"]._values.get("repository", "")
            if not str(repository).strip():
                errors.append("catalog.repository must not be empty")

        if "registry" in self._namespaces:
            reg = self._namespaces["registry"]
            for key in ("pageSize", "pageCrawlLimit", "timeout"):
                if not self.is_positive_int(reg._values.get(key)):
                    errors.append(f"registry.{key} must be a positive integer")

        if "logging" in self._namespaces:
            level = str(self._namespaces["logging"]._values.get("level", "")).upper()
            if level not in LOG_LEVELS:
                errors.append(f"logging.level must be one of {LOG_LEVELS}")

        if "registryAuth" in self._namespaces:
            auth = self._namespaces["registryAuth"]
            if not isinstance(auth.enabled, bool):
                errors.append("registryAuth.enabled must be a boolean")
            if not isinstance(auth.credentialsFile, str) or not auth.credentialsFile:
                errors.append("registryAuth.credentialsFile must be a path")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
            raise ValueError(error_msg)

    def is_positive_int(self, value):
        """
        Check if a raw config value is a positive integer.

        Parameters:
            value: The value to validate

        Returns:
            bool: True for strings like "100", False otherwise
        """
        return isinstance(value, str) and value.strip().isdigit() and int(value) > 0

    def __getattr__(self, section):
        if section.startswith("_"):
            raise AttributeError(section)
        if section not in self._namespaces:
            raise AttributeError(f"Config section '{section}' not found")
        return self._namespaces[section]


# Global instance
config = Config()
