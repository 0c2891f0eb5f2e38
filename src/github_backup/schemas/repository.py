"""Pydantic schema for the repository being backed up."""

from pydantic import BaseModel, Field


class RepositoryRef(BaseModel):
    """Owner/name pair identifying the mirrored repository."""

    owner: str = Field(min_length=1, max_length=100, description="GitHub org or user")
    name: str = Field(min_length=1, max_length=100, description="Repository name")

    @property
    def full_name(self) -> str:
        """Repository path in owner/name form."""
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_full_name(cls, full_name: str) -> "RepositoryRef":
        """
        Factory method to create from a full repository name.

        Args:
            full_name: Full repo path like 'octocat/Hello-World'

        Returns:
            RepositoryRef with owner and name extracted

        Raises:
            ValueError: If the string is not in owner/name form
        """
        owner, name = parse_repo_string(full_name)
        return cls(owner=owner, name=name)


def parse_repo_string(repo: str) -> tuple[str, str]:
    """Split an ``owner/name`` string.

    Raises:
        ValueError: If there is not exactly one slash or either side is empty
    """
    parts = repo.strip().split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Repository must be in owner/name format: {repo!r}")
    return parts[0], parts[1]
