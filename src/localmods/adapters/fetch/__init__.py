from .github_archive import GitHubArchiveFetcher
from .git_clone import GitCloneFetcher

__all__ = ["GitHubArchiveFetcher", "GitCloneFetcher"]
