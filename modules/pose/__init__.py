"""
Posture analysis pipeline.

This package defines the landmark data model, the LandmarkSource capability
(camera + MediaPipe, or a synthetic generator) and the per-frame stages:
smoothing, view classification, calibration and posture analysis.
"""
