"""Configuration module for the dispatch layer.

Settings models live in ``ai_dispatch.config.settings``; they are not imported
here because they depend on the reliability layer, which itself reads these
constants.
"""

from .constants import *  # noqa: F401,F403
