"""TrailSync — travel-sharing platform backend.

REST API where users register, authenticate, publish trip posts with
photos, and comment on each other's posts.
"""

__version__ = "0.1.0"
