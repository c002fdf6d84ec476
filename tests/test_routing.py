import pytest

from fabtrack.models import Category
from fabtrack.routing import (
    AdminRoute, FileViewRoute, JobListRoute, TaskBoardRoute, match_route, route_path
)


@pytest.mark.parametrize("path, expected", [
    ("", JobListRoute()),
    ("/", JobListRoute()),
    ("#/", JobListRoute()),
    ("/unknown/page", JobListRoute()),
    ("/files/17408", FileViewRoute(project_no="17408")),
    ("#/files/4715", FileViewRoute(project_no="4715")),
    ("/files/JOB%2017", FileViewRoute(project_no="JOB 17")),
    ("/panels", TaskBoardRoute(category=Category.PANEL)),
    ("/cutting", TaskBoardRoute(category=Category.CUTTING)),
    ("#/doors", TaskBoardRoute(category=Category.DOOR)),
    ("/strip-curtains/", TaskBoardRoute(category=Category.STRIP_CURTAIN)),
    ("/accessories", TaskBoardRoute(category=Category.ACCESSORIES)),
    ("/system", TaskBoardRoute(category=Category.SYSTEM)),
    ("/admin", AdminRoute()),
])
def test_match_route(path, expected):
    assert match_route(path) == expected


def test_files_without_project_is_job_list():
    assert isinstance(match_route("/files/"), JobListRoute)


@pytest.mark.parametrize("route", [
    JobListRoute(),
    FileViewRoute(project_no="17408"),
    TaskBoardRoute(category=Category.DOOR),
    AdminRoute(),
])
def test_route_path_matches_back(route):
    assert match_route(route_path(route)) == route
