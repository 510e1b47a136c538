"""Random values for test routes and fixtures."""
import random


def username() -> str:
    return f"Name{random.randint(100, 999)}"
