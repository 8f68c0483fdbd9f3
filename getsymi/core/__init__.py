"""Core types shared by every installer stage."""
