"""Shared test constants."""

WALLET = "0x" + "ab" * 20
OTHER_WALLET = "0x" + "cd" * 20
