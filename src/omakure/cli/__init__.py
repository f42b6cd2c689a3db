"""omakure command line interface."""
