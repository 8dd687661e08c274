"""Channel-independent services used by the CLI and the web app."""
