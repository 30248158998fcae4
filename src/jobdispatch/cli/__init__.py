"""jobdispatch command line interface."""
