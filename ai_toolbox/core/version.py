"""
AI Toolbox - Version Constants
This file contains version information for the application.
Update VERSION_PATCH when code changes are made.
"""

APP_NAME = "AI Toolbox"
APP_ID = "ai-toolbox"
VERSION_MAJOR = 0
VERSION_MINOR = 4
VERSION_PATCH = 0
VERSION = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"
VERSION_STRING = f"{APP_NAME} v{VERSION}"
