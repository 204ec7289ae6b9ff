"""habitcore — habit progress and analytics engine.

Derives streaks, completion rates and usage patterns from a sparse,
user-editable completion log and keeps each habit's stored progress
snapshot consistent after every change.
"""

__version__ = "0.1.0"
