from app.utils.base.enums import BaseEnum, Career, Role, SkillLevel

__all__ = ["BaseEnum", "Career", "Role", "SkillLevel"]
