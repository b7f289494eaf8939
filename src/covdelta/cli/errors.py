# mirror <sysexits.h>
EXIT_OK = 0  # Normal success
EXIT_GENERIC = 1  # Generic failure (fallback)
EXIT_THRESHOLD = 2  # New code coverage below --min-coverage
EXIT_DATAERR = 65  # Input data was invalid (e.g., malformed coverage profile)
EXIT_NOINPUT = 66  # Input file not found (e.g., coverage profile missing)
EXIT_CONFIG = 78  # Invalid configuration (e.g., bad covdelta.toml)
