"""Configuration, exceptions, logging and metrics shared by gateway and proxy."""
