"""Decoding MotionCam raw frame payloads, writing DNG and WAV files, and managing recordings."""

__version__ = "0.5.0"