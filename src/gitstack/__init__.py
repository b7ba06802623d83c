"""GitStack: a web front-end and thin proxy for the GitHub REST API.

Signs users in with GitHub OAuth, forwards repository, issue and pull
request calls with their token, keeps locally authored issues/PRs in a
small document store, and browses git working copies found on disk.
"""

__version__ = "0.1.0"
