"""Configuration of the installed system and of the live environment."""
