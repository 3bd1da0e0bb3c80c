"""Options, validation and identifier decoding for the proxy agent."""
