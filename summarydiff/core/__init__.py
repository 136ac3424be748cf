"""Layout constants, configuration and errors."""
