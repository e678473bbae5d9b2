from genie.models.project import Project

__all__ = ["Project"]
