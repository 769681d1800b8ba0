"""Detector Studio: AI-content detection and writing tools backed by a hosted Gemini model."""
