from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from app.models.bootcamp import Bootcamp
from app.models.course import Course, update_average_cost
from app.services.access import load_owned, require_roles
from app.services.auth import AuthContext
from app.services.query import advanced_results
from app.utils.base import Role, SkillLevel
from app.utils.errors import NotFound


router = APIRouter()

publishers = require_roles(Role.PUBLISHER.value, Role.ADMIN.value)


class CourseBody(BaseModel):
    title: str
    description: str
    weeks: str
    tuition: int = Field(ge=0)
    minimum_skill: SkillLevel
    scholarship_available: bool = False


class CourseUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    weeks: str | None = None
    tuition: int | None = Field(default=None, ge=0)
    minimum_skill: SkillLevel | None = None
    scholarship_available: bool | None = None


@router.get("/courses")
def list_courses(request: Request) -> dict:
    """PUBLIC: List courses with filtering, selection, sorting and pagination."""
    return advanced_results(Course, request)


@router.get("/bootcamps/{bootcamp_id}/courses")
def list_bootcamp_courses(bootcamp_id: str) -> dict:
    """PUBLIC: All courses of one bootcamp."""
    bootcamp: Bootcamp | None = Bootcamp.get_by_id(bootcamp_id)
    if not bootcamp:
        raise NotFound(f"Bootcamp not found with id of {bootcamp_id}")
    courses = Course.objects(bootcamp=bootcamp)
    return {"success": True, "count": courses.count(), "data": [c.to_output() for c in courses]}


@router.get("/courses/{course_id}")
def get_course(course_id: str) -> dict:
    """PUBLIC: Single course with its bootcamp's name and description."""
    course: Course | None = Course.get_by_id(course_id)
    if not course:
        raise NotFound(f"Course not found with id of {course_id}")
    return {"success": True, "data": course.to_output()}


@router.post("/bootcamps/{bootcamp_id}/courses", status_code=201)
def add_course(bootcamp_id: str, body: CourseBody, ctx: AuthContext = Depends(publishers)) -> dict:
    """PROTECTED | BOOTCAMP OWNER: Add a course to a bootcamp."""
    bootcamp: Bootcamp = load_owned(Bootcamp, bootcamp_id, ctx, action="add a course to")
    course = Course(bootcamp=bootcamp, user=ctx.user, **body.model_dump(mode="json"))
    course.save()
    update_average_cost(bootcamp)
    return {"success": True, "data": course.to_output()}


@router.put("/courses/{course_id}")
def update_course(course_id: str, body: CourseUpdate, ctx: AuthContext = Depends(publishers)) -> dict:
    """PROTECTED | OWNER: Update course fields present in the body."""
    course: Course = load_owned(Course, course_id, ctx, action="update")
    for field, value in body.model_dump(mode="json", exclude_unset=True).items():
        setattr(course, field, value)
    course.save()
    update_average_cost(course.bootcamp)
    return {"success": True, "data": course.to_output()}


@router.delete("/courses/{course_id}")
def delete_course(course_id: str, ctx: AuthContext = Depends(publishers)) -> dict:
    """PROTECTED | OWNER: Remove a course."""
    course: Course = load_owned(Course, course_id, ctx, action="delete")
    bootcamp = course.bootcamp
    course.delete()
    update_average_cost(bootcamp)
    return {"success": True, "data": {}}
