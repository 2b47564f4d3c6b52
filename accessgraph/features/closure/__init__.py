"""
Group closure feature module.

Resolves nested group membership and managership into effective user sets.
"""
