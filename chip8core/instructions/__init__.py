"""CHIP-8 instruction group implementations."""
