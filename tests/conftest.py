"""Pytest configuration and shared fixtures: mock transports and an in-memory tracker API."""

import json
import re
from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio

from fluxtrack.services.http_client import close_http_client, init_http_client

BASE_URL = "http://test/api/"
TODAY = "2026-01-24"


def _error(status: int, code: str, message: str | None = None) -> httpx.Response:
    body = {"error": code}
    if message:
        body["message"] = message
    return httpx.Response(status, json=body)


class FakeTrackerServer:
    """Enough of the tracker API to exercise the stores end to end.

    Enforces one log per date and a single active plan, rejects `_id` / `sessionOrder` in
    request bodies like the real server, and records every request in `requests`.
    """

    def __init__(self) -> None:
        self.today = TODAY
        self.profile: dict | None = None
        self.logs: dict[str, dict] = {}
        self.plans: dict[int, dict] = {}
        self.recalibrations: list[dict] = []
        self.notification: dict | None = None
        self.requests: list[httpx.Request] = []
        self._next_plan_id = 1
        self._failures: dict[tuple[str, str], list[httpx.Response]] = {}
        self._routes: list[tuple[str, re.Pattern, Callable]] = [
            ("GET", re.compile(r"/profile"), self.get_profile),
            ("PUT", re.compile(r"/profile"), self.put_profile),
            ("GET", re.compile(r"/logs/today"), self.get_today_log),
            ("POST", re.compile(r"/logs"), self.create_log),
            ("DELETE", re.compile(r"/logs/today"), self.delete_today_log),
            ("GET", re.compile(r"/logs/(?P<date>[\d-]+)"), self.get_log_by_date),
            ("PATCH", re.compile(r"/logs/(?P<date>[\d-]+)/actual-training"), self.update_actual),
            ("PATCH", re.compile(r"/logs/(?P<date>[\d-]+)/active-calories"), self.update_active_calories),
            ("GET", re.compile(r"/plans/active"), self.get_active_plan),
            ("GET", re.compile(r"/plans/current-week"), self.get_current_week),
            ("GET", re.compile(r"/plans/(?P<plan_id>\d+)"), self.get_plan),
            ("GET", re.compile(r"/plans/(?P<plan_id>\d+)/recalibrations"), self.get_recalibrations),
            ("POST", re.compile(r"/plans"), self.create_plan),
            ("POST", re.compile(r"/plans/(?P<plan_id>\d+)/(?P<action>complete|abandon|pause|resume)"), self.plan_action),
            ("POST", re.compile(r"/plans/(?P<plan_id>\d+)/recalibrate"), self.recalibrate),
            ("GET", re.compile(r"/metabolic/notification"), self.get_notification),
            ("POST", re.compile(r"/metabolic/notification/(?P<nid>\d+)/dismiss"), self.dismiss_notification),
        ]

    # -- test helpers ------------------------------------------------------

    def fail_next(self, method: str, path: str, status: int, body: dict | bytes | None = None) -> None:
        """Make the next `method path` call return `status` with `body` instead of being handled."""
        if isinstance(body, bytes):
            response = httpx.Response(status, content=body)
        else:
            response = httpx.Response(status, json=body if body is not None else {"error": "internal_error"})
        self._failures.setdefault((method, path), []).append(response)

    def calls(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and self._path(r) == path)

    def bodies(self, method: str, path: str) -> list:
        return [json.loads(r.content) for r in self.requests if r.method == method and self._path(r) == path]

    @staticmethod
    def _path(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/api")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = self._path(request)
        queued = self._failures.get((request.method, path))
        if queued:
            return queued.pop(0)
        body = json.loads(request.content) if request.content else None
        for method, pattern, handler in self._routes:
            match = pattern.fullmatch(path)
            if method == request.method and match:
                return handler(body, **match.groupdict())
        return _error(404, "not_found", f"No route for {request.method} {path}")

    # -- profile -----------------------------------------------------------

    def get_profile(self, body):
        if self.profile is None:
            return _error(404, "not_found", "Profile not found")
        return httpx.Response(200, json=self.profile)

    def put_profile(self, body):
        self.profile = {**body, "updatedAt": f"{self.today}T08:00:00Z"}
        return httpx.Response(200, json=self.profile)

    # -- daily logs --------------------------------------------------------

    @staticmethod
    def _has_client_fields(sessions: list[dict]) -> bool:
        return any("_id" in s or "sessionOrder" in s for s in sessions)

    def get_today_log(self, body):
        log = self.logs.get(self.today)
        if log is None:
            return _error(404, "not_found", "No log for today")
        return httpx.Response(200, json=log)

    def create_log(self, body):
        log_date = body.get("date") or self.today
        if log_date in self.logs:
            return _error(409, "already_exists", f"A log for {log_date} already exists")
        planned = body.get("plannedTrainingSessions", [])
        if self._has_client_fields(planned):
            return _error(400, "validation_error", "Unknown field in training session")
        weight = body["weightKg"]
        calories = int(weight * 28)
        log = {
            **body,
            "date": log_date,
            "dayType": body.get("dayType") or "fatburner",
            "plannedTrainingSessions": [{**s, "sessionOrder": i + 1} for i, s in enumerate(planned)],
            "trainingSummary": {
                "sessionCount": len(planned),
                "totalDurationMin": sum(s["durationMin"] for s in planned),
                "totalLoadScore": 0,
                "summary": f"{len(planned)} sessions",
            },
            "calculatedTargets": {
                "totalCarbsG": 250,
                "totalProteinG": 160,
                "totalFatsG": 70,
                "totalCalories": calories,
                "meals": {
                    "breakfast": {"carbs": 3, "protein": 2, "fats": 1},
                    "lunch": {"carbs": 4, "protein": 3, "fats": 2},
                    "dinner": {"carbs": 5, "protein": 4, "fats": 2},
                },
                "fruitG": 200,
                "veggiesG": 400,
                "waterL": 3.0,
                "dayType": body.get("dayType") or "fatburner",
            },
            "estimatedTDEE": calories,
        }
        self.logs[log_date] = log
        return httpx.Response(201, json=log)

    def delete_today_log(self, body):
        if self.logs.pop(self.today, None) is None:
            return _error(404, "not_found", "No log for today")
        return httpx.Response(204)

    def get_log_by_date(self, body, date):
        log = self.logs.get(date)
        if log is None:
            return _error(404, "not_found", f"No log for {date}")
        return httpx.Response(200, json=log)

    def update_active_calories(self, body, date):
        log = self.logs.get(date)
        if log is None:
            return _error(404, "not_found", f"No log for {date}")
        log["activeCaloriesBurned"] = body["activeCaloriesBurned"]
        return httpx.Response(200, json=log)

    def update_actual(self, body, date):
        log = self.logs.get(date)
        if log is None:
            return _error(404, "not_found", f"No log for {date}")
        sessions = body["actualSessions"]
        if self._has_client_fields(sessions):
            return _error(400, "validation_error", "Unknown field in training session")
        log["actualTrainingSessions"] = [{**s, "sessionOrder": i + 1} for i, s in enumerate(sessions)]
        return httpx.Response(200, json=log)

    # -- plans -------------------------------------------------------------

    def _active(self) -> dict | None:
        return next((p for p in self.plans.values() if p["status"] == "active"), None)

    @staticmethod
    def _weekly_targets(plan: dict) -> list[dict]:
        return [
            {
                "weekNumber": week,
                "startDate": plan["startDate"],
                "endDate": plan["startDate"],
                "projectedWeightKg": plan["startWeightKg"] + plan["requiredWeeklyChangeKg"] * week,
                "projectedTDEE": 2500,
                "targetIntakeKcal": int(2500 - plan["requiredDailyDeficitKcal"]),
                "targetCarbsG": 220,
                "targetProteinG": 160,
                "targetFatsG": 65,
                "daysLogged": 0,
            }
            for week in range(1, plan["durationWeeks"] + 1)
        ]

    @staticmethod
    def _recompute(plan: dict) -> None:
        change = (plan["goalWeightKg"] - plan["startWeightKg"]) / plan["durationWeeks"]
        plan["requiredWeeklyChangeKg"] = round(change, 3)
        plan["requiredDailyDeficitKcal"] = round(-change * 7700 / 7, 1)

    def create_plan(self, body):
        if self._active() is not None:
            return _error(409, "active_plan_exists", "An active nutrition plan already exists. Complete or abandon it first.")
        plan = {**body, "id": self._next_plan_id, "status": "active", "currentWeek": 1}
        self._next_plan_id += 1
        self._recompute(plan)
        plan["weeklyTargets"] = self._weekly_targets(plan)
        self.plans[plan["id"]] = plan
        return httpx.Response(201, json=plan)

    def get_active_plan(self, body):
        # The real server answers 200 with JSON null when nothing is active
        return httpx.Response(200, json=self._active())

    def get_plan(self, body, plan_id):
        plan = self.plans.get(int(plan_id))
        if plan is None:
            return _error(404, "not_found", "Nutrition plan not found")
        return httpx.Response(200, json=plan)

    def get_current_week(self, body):
        plan = self._active()
        if plan is None:
            return _error(404, "not_found", "No active nutrition plan exists")
        return httpx.Response(200, json=plan["weeklyTargets"][plan["currentWeek"] - 1])

    def plan_action(self, body, plan_id, action):
        plan = self.plans.get(int(plan_id))
        if plan is None:
            return _error(404, "not_found", "Nutrition plan not found")
        plan["status"] = {
            "complete": "completed",
            "abandon": "abandoned",
            "pause": "paused",
            "resume": "active",
        }[action]
        return httpx.Response(204)

    def recalibrate(self, body, plan_id):
        plan = self.plans.get(int(plan_id))
        if plan is None:
            return _error(404, "not_found", "Nutrition plan not found")
        before = dict(plan)
        option = body["type"]
        if option == "extend_timeline":
            plan["durationWeeks"] += 4
        elif option == "revise_goal":
            plan["goalWeightKg"] = round((plan["goalWeightKg"] + plan["startWeightKg"]) / 2, 1)
        elif option == "increase_deficit":
            plan["durationWeeks"] = max(4, plan["durationWeeks"] - 2)
        elif option != "keep_current":
            return _error(400, "validation_error", f"Unknown recalibration type {option}")
        self._recompute(plan)
        plan["weeklyTargets"] = self._weekly_targets(plan)
        plan["lastRecalibratedAt"] = f"{self.today}T09:00:00Z"
        self.recalibrations.append(
            {
                "id": len(self.recalibrations) + 1,
                "planId": plan["id"],
                "actionType": option,
                "details": {
                    "beforeGoalWeightKg": before["goalWeightKg"],
                    "beforeDurationWeeks": before["durationWeeks"],
                    "beforeRequiredWeeklyChangeKg": before["requiredWeeklyChangeKg"],
                    "beforeDailyDeficitKcal": before["requiredDailyDeficitKcal"],
                    "afterGoalWeightKg": plan["goalWeightKg"],
                    "afterDurationWeeks": plan["durationWeeks"],
                    "afterRequiredWeeklyChangeKg": plan["requiredWeeklyChangeKg"],
                    "afterDailyDeficitKcal": plan["requiredDailyDeficitKcal"],
                    "currentWeek": plan["currentWeek"],
                    "actualWeightKg": plan["startWeightKg"],
                },
                "createdAt": plan["lastRecalibratedAt"],
            }
        )
        return httpx.Response(200, json=plan)

    def get_recalibrations(self, body, plan_id):
        return httpx.Response(200, json=[r for r in self.recalibrations if r["planId"] == int(plan_id)])

    # -- notifications -----------------------------------------------------

    def get_notification(self, body):
        return httpx.Response(200, json=self.notification)

    def dismiss_notification(self, body, nid):
        if self.notification is not None and self.notification["id"] == int(nid):
            self.notification = None
        return httpx.Response(204)


class RecordingHandler:
    """MockTransport handler returning whatever `responder` produces; keeps every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responder: Callable = lambda request: httpx.Response(200, json={})

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.responder(request)


@pytest.fixture
def fake_server() -> FakeTrackerServer:
    return FakeTrackerServer()


@pytest_asyncio.fixture
async def api(fake_server):
    """Route the shared HTTP client to the in-memory tracker API."""
    init_http_client(base_url=BASE_URL, transport=httpx.MockTransport(fake_server))
    yield fake_server
    await close_http_client()


@pytest_asyncio.fixture
async def http():
    """Route the shared HTTP client to a RecordingHandler with a configurable responder."""
    handler = RecordingHandler()
    init_http_client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    yield handler
    await close_http_client()
