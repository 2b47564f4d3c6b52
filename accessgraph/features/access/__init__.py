"""
Access aggregation feature module.

Turns a relation store snapshot into per-user manage/view counts and the
benchmark dataset: sample (resource, user) pairs per access path plus the
heavy-manager and regular-viewer subjects.
"""
