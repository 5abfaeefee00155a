import pytest
from sqlalchemy.exc import OperationalError

from conftest import auth_headers
from learnhub.models import LearningTask, ProgressLog, Role, TaskStatus
from learnhub.settings import settings


def task_status(db_session, task_id: str) -> str:
	db_session.expire_all()
	return db_session.get(LearningTask, task_id).status


@pytest.fixture
def assigned(make_user, make_task):
	educator = make_user(Role.EDUCATOR)
	student = make_user(Role.STUDENT)
	task = make_task(educator, assignee=student)
	return educator, student, task


class TestLogProgress:
	def test_hundred_percent_marks_done(self, client, db_session, assigned):
		_, student, task = assigned
		resp = client.post(f"/api/tasks/{task.id}/progress", json={"progressPercentage": 100}, headers=auth_headers(student))
		assert resp.status_code == 200
		body = resp.json()
		assert body["message"] == "Progress updated successfully"
		assert body["data"]["progressPercentage"] == 100
		assert body["data"]["taskId"] == task.id
		assert task_status(db_session, task.id) == "DONE"

	def test_partial_progress_marks_in_progress(self, client, db_session, assigned):
		_, student, task = assigned
		client.post(
			f"/api/tasks/{task.id}/progress",
			json={"progressPercentage": 50, "notes": "halfway", "timeSpent": 30},
			headers=auth_headers(student),
		)
		assert task_status(db_session, task.id) == "IN_PROGRESS"

	def test_zero_progress_leaves_status(self, client, db_session, assigned):
		_, student, task = assigned
		resp = client.post(f"/api/tasks/{task.id}/progress", json={"progressPercentage": 0}, headers=auth_headers(student))
		assert resp.status_code == 200
		assert task_status(db_session, task.id) == "TODO"

	def test_progress_reopens_cancelled_task_by_default(self, client, db_session, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		task = make_task(educator, assignee=student, status=TaskStatus.CANCELLED)
		client.post(f"/api/tasks/{task.id}/progress", json={"progressPercentage": 20}, headers=auth_headers(student))
		assert task_status(db_session, task.id) == "IN_PROGRESS"

	def test_reopening_can_be_switched_off(self, client, db_session, make_user, make_task, monkeypatch):
		monkeypatch.setattr(settings, "progress_reopens_closed_tasks", False)
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		task = make_task(educator, assignee=student, status=TaskStatus.CANCELLED)
		resp = client.post(f"/api/tasks/{task.id}/progress", json={"progressPercentage": 20}, headers=auth_headers(student))
		assert resp.status_code == 200
		assert task_status(db_session, task.id) == "CANCELLED"

	def test_general_task_logs_without_status_change(self, client, db_session, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		task = make_task(educator)
		resp = client.post(f"/api/tasks/{task.id}/progress", json={"progressPercentage": 100}, headers=auth_headers(student))
		assert resp.status_code == 200
		assert task_status(db_session, task.id) == "TODO"
		assert db_session.query(ProgressLog).filter(ProgressLog.task_id == task.id).count() == 1

	def test_invisible_task_is_404_and_nothing_logged(self, client, db_session, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		owner = make_user(Role.STUDENT)
		stranger = make_user(Role.STUDENT)
		task = make_task(educator, assignee=owner)
		resp = client.post(f"/api/tasks/{task.id}/progress", json={"progressPercentage": 100}, headers=auth_headers(stranger))
		assert resp.status_code == 404
		assert db_session.query(ProgressLog).count() == 0
		assert task_status(db_session, task.id) == "TODO"

	@pytest.mark.parametrize("payload", [{"progressPercentage": 101}, {"progressPercentage": -1}, {}, {"progressPercentage": 10, "timeSpent": -5}])
	def test_validation(self, client, assigned, payload):
		_, student, task = assigned
		resp = client.post(f"/api/tasks/{task.id}/progress", json=payload, headers=auth_headers(student))
		assert resp.status_code == 400
		assert resp.json()["details"]

	def test_failed_commit_rolls_back_both_writes(self, client, db_session, assigned, monkeypatch):
		from sqlalchemy.orm import Session

		_, student, task = assigned
		task_id = task.id
		headers = auth_headers(student)

		def broken_commit(self):
			raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

		monkeypatch.setattr(Session, "commit", broken_commit)
		resp = client.post(f"/api/tasks/{task_id}/progress", json={"progressPercentage": 100}, headers=headers)
		monkeypatch.undo()

		assert resp.status_code == 500
		assert task_status(db_session, task_id) == "TODO"
		assert db_session.query(ProgressLog).count() == 0


class TestListProgress:
	def test_logs_newest_first(self, client, assigned):
		_, student, task = assigned
		headers = auth_headers(student)
		for pct in (10, 40, 70):
			client.post(f"/api/tasks/{task.id}/progress", json={"progressPercentage": pct}, headers=headers)
		resp = client.get(f"/api/tasks/{task.id}/progress", headers=headers)
		assert resp.status_code == 200
		values = [log["progressPercentage"] for log in resp.json()["data"]]
		assert values == [70, 40, 10]

	def test_requires_visibility(self, client, make_user, assigned):
		_, _, task = assigned
		stranger = make_user(Role.STUDENT)
		assert client.get(f"/api/tasks/{task.id}/progress", headers=auth_headers(stranger)).status_code == 404
