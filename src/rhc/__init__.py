"""rhc: an interactive terminal HTTP request dispatcher."""
