"""
GitlessSync Client

Keeps a local folder and a GitHub repository in sync through the git
database REST API, without a local git client.

Author: GitlessSync Project
"""

VERSION = "1.0.0"
__version__ = VERSION
