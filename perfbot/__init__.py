"""Pull-request bot that triggers benchmark jobs and reports Horreum results."""

__version__ = "0.1.0"
