from conftest import auth_headers
from learnhub.models import LearningTask, Role, TaskStatus


class TestListTasks:
	def test_requires_session(self, client):
		resp = client.get("/api/tasks")
		assert resp.status_code == 401
		assert resp.json() == {"success": False, "error": "Unauthorized"}

	def test_student_list_includes_general_task_not_classmates(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		classmate = make_user(Role.STUDENT)
		general = make_task(educator, title="general")
		make_task(educator, assignee=classmate, title="theirs")

		resp = client.get("/api/tasks", headers=auth_headers(student))
		assert resp.status_code == 200
		body = resp.json()
		assert body["success"] is True
		assert [t["id"] for t in body["data"]] == [general.id]
		assert body["pagination"] == {"limit": 20, "offset": 0, "total": 1}

	def test_camel_case_fields(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		make_task(educator, tags=["sql", "db"], estimated_time=90)
		task = client.get("/api/tasks", headers=auth_headers(educator)).json()["data"][0]
		assert task["tags"] == ["sql", "db"]
		assert task["estimatedTime"] == 90
		assert task["difficultyLevel"] == "INTERMEDIATE"
		assert task["creatorId"] == educator.id
		assert task["assigneeId"] is None
		assert "createdAt" in task and "archivedAt" in task

	def test_invalid_query_returns_400(self, client, make_user):
		user = make_user(Role.STUDENT)
		resp = client.get("/api/tasks", params={"limit": 500, "status": "NOPE"}, headers=auth_headers(user))
		assert resp.status_code == 400
		assert resp.json()["error"] == "Validation error"
		assert len(resp.json()["details"]) == 2

	def test_corrupt_tags_surface_as_500(self, client, db_session, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		task = make_task(educator)
		task.tags_json = "{not json"
		db_session.commit()
		resp = client.get("/api/tasks", headers=auth_headers(educator))
		assert resp.status_code == 500
		assert resp.json() == {"success": False, "error": "Internal server error"}


class TestCreateTask:
	def test_educator_creates_task(self, client, db_session, make_user):
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		resp = client.post(
			"/api/tasks",
			json={
				"title": "Graph algorithms",
				"priority": "HIGH",
				"estimatedTime": 120,
				"tags": ["graphs"],
				"difficultyLevel": "ADVANCED",
				"assigneeId": student.id,
				"dueDate": "2026-11-01T12:00:00Z",
			},
			headers=auth_headers(educator),
		)
		assert resp.status_code == 201
		body = resp.json()
		assert body["message"] == "Task created successfully"
		data = body["data"]
		assert data["status"] == "TODO"
		assert data["priority"] == "HIGH"
		assert data["creatorId"] == educator.id
		assert data["assigneeId"] == student.id
		row = db_session.get(LearningTask, data["id"])
		assert row.tags == ["graphs"]

	def test_defaults(self, client, make_user):
		educator = make_user(Role.EDUCATOR)
		data = client.post("/api/tasks", json={"title": "Defaults"}, headers=auth_headers(educator)).json()["data"]
		assert data["priority"] == "MEDIUM"
		assert data["difficultyLevel"] == "INTERMEDIATE"
		assert data["tags"] == []

	def test_students_and_admins_cannot_create(self, client, make_user):
		for role in (Role.STUDENT, Role.ADMIN):
			user = make_user(role)
			resp = client.post("/api/tasks", json={"title": "Nope"}, headers=auth_headers(user))
			assert resp.status_code == 403
			assert resp.json()["error"] == "Only educators can create tasks"

	def test_validation(self, client, make_user):
		educator = make_user(Role.EDUCATOR)
		resp = client.post("/api/tasks", json={"title": "", "estimatedTime": 20000}, headers=auth_headers(educator))
		assert resp.status_code == 400
		fields = {d["path"][-1] for d in resp.json()["details"]}
		assert fields == {"title", "estimatedTime"}

	def test_unknown_assignee_or_parent(self, client, make_user):
		educator = make_user(Role.EDUCATOR)
		headers = auth_headers(educator)
		assert client.post("/api/tasks", json={"title": "x", "assigneeId": "user_nope"}, headers=headers).status_code == 400
		assert client.post("/api/tasks", json={"title": "x", "parentTaskId": "task_nope"}, headers=headers).status_code == 400

	def test_hidden_parent_looks_missing(self, client, db_session, make_user, make_task):
		owner = make_user(Role.EDUCATOR)
		other = make_user(Role.EDUCATOR)
		hidden = make_task(owner, title="not yours")
		headers = auth_headers(other)
		hidden_resp = client.post("/api/tasks", json={"title": "child", "parentTaskId": hidden.id}, headers=headers)
		missing_resp = client.post("/api/tasks", json={"title": "child", "parentTaskId": "task_nope"}, headers=headers)
		assert hidden_resp.status_code == missing_resp.status_code == 400
		assert hidden_resp.json() == missing_resp.json()
		assert db_session.query(LearningTask).filter(LearningTask.parent_task_id == hidden.id).count() == 0

	def test_subtask_links_parent(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		parent = make_task(educator, title="parent")
		resp = client.post("/api/tasks", json={"title": "child", "parentTaskId": parent.id}, headers=auth_headers(educator))
		assert resp.status_code == 201
		assert resp.json()["data"]["parentTaskId"] == parent.id


class TestTaskDetail:
	def test_general_task_visible_to_student(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		task = make_task(educator, title="general")
		resp = client.get(f"/api/tasks/{task.id}", headers=auth_headers(student))
		assert resp.status_code == 200
		assert resp.json()["data"]["title"] == "general"

	def test_invisible_and_missing_are_both_404(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		classmate = make_user(Role.STUDENT)
		hidden = make_task(educator, assignee=classmate)
		a = client.get(f"/api/tasks/{hidden.id}", headers=auth_headers(student))
		b = client.get("/api/tasks/task_missing", headers=auth_headers(student))
		assert a.status_code == b.status_code == 404
		assert a.json() == b.json()


class TestUpdateTask:
	def test_assignee_updates_fields(self, client, db_session, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		task = make_task(educator, assignee=student)
		resp = client.put(
			f"/api/tasks/{task.id}",
			json={"status": "IN_PROGRESS", "actualTime": 45, "tags": ["a"], "dueDate": None},
			headers=auth_headers(student),
		)
		assert resp.status_code == 200
		data = resp.json()["data"]
		assert data["status"] == "IN_PROGRESS"
		assert data["actualTime"] == 45
		assert data["tags"] == ["a"]

	def test_assignee_cannot_reassign(self, client, db_session, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		classmate = make_user(Role.STUDENT)
		task = make_task(educator, assignee=student)
		for target in (classmate.id, None):
			resp = client.put(f"/api/tasks/{task.id}", json={"assigneeId": target}, headers=auth_headers(student))
			assert resp.status_code == 403
		db_session.expire_all()
		assert db_session.get(LearningTask, task.id).assignee_id == student.id
		assert client.get(f"/api/tasks/{task.id}", headers=auth_headers(classmate)).status_code == 404

	def test_creator_and_admin_may_reassign(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		admin = make_user(Role.ADMIN)
		student = make_user(Role.STUDENT)
		classmate = make_user(Role.STUDENT)
		task = make_task(educator, assignee=student)
		resp = client.put(f"/api/tasks/{task.id}", json={"assigneeId": classmate.id}, headers=auth_headers(educator))
		assert resp.json()["data"]["assigneeId"] == classmate.id
		resp = client.put(f"/api/tasks/{task.id}", json={"assigneeId": None}, headers=auth_headers(admin))
		assert resp.status_code == 200
		assert resp.json()["data"]["assigneeId"] is None

	def test_update_limits_match_create(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		task = make_task(educator)
		headers = auth_headers(educator)
		assert client.put(f"/api/tasks/{task.id}", json={"title": "t" * 500}, headers=headers).status_code == 200
		assert client.put(f"/api/tasks/{task.id}", json={"title": "t" * 501}, headers=headers).status_code == 400
		assert client.put(f"/api/tasks/{task.id}", json={"estimatedTime": 20000}, headers=headers).status_code == 400

	def test_outsider_gets_403(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		outsider = make_user(Role.STUDENT)
		task = make_task(educator)
		resp = client.put(f"/api/tasks/{task.id}", json={"title": "mine now"}, headers=auth_headers(outsider))
		assert resp.status_code == 403

	def test_empty_update_is_400(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		task = make_task(educator)
		resp = client.put(f"/api/tasks/{task.id}", json={}, headers=auth_headers(educator))
		assert resp.status_code == 400
		assert resp.json()["error"] == "No fields to update"

	def test_null_for_required_field_is_400(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		task = make_task(educator)
		resp = client.put(f"/api/tasks/{task.id}", json={"title": None}, headers=auth_headers(educator))
		assert resp.status_code == 400

	def test_missing_task_is_404(self, client, make_user):
		admin = make_user(Role.ADMIN)
		assert client.put("/api/tasks/task_missing", json={"title": "x"}, headers=auth_headers(admin)).status_code == 404


class TestDeleteTask:
	def test_non_creator_gets_403_and_task_stays(self, client, db_session, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		student = make_user(Role.STUDENT)
		task = make_task(educator, assignee=student)
		resp = client.delete(f"/api/tasks/{task.id}", headers=auth_headers(student))
		assert resp.status_code == 403
		db_session.expire_all()
		assert db_session.get(LearningTask, task.id).archived_at is None

	def test_creator_soft_deletes(self, client, db_session, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		task = make_task(educator)
		resp = client.delete(f"/api/tasks/{task.id}", headers=auth_headers(educator))
		assert resp.status_code == 200
		assert resp.json() == {"success": True, "message": "Task deleted successfully"}
		db_session.expire_all()
		assert db_session.get(LearningTask, task.id).archived_at is not None
		# archived tasks behave as missing afterwards
		assert client.delete(f"/api/tasks/{task.id}", headers=auth_headers(educator)).status_code == 404
		assert client.get(f"/api/tasks/{task.id}", headers=auth_headers(educator)).status_code == 404

	def test_admin_may_delete_any_task(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		admin = make_user(Role.ADMIN)
		task = make_task(educator)
		assert client.delete(f"/api/tasks/{task.id}", headers=auth_headers(admin)).status_code == 200

	def test_archived_listing_on_request(self, client, make_user, make_task):
		educator = make_user(Role.EDUCATOR)
		task = make_task(educator)
		client.delete(f"/api/tasks/{task.id}", headers=auth_headers(educator))
		default = client.get("/api/tasks", headers=auth_headers(educator)).json()["data"]
		archived = client.get("/api/tasks", params={"includeArchived": "true"}, headers=auth_headers(educator)).json()["data"]
		assert default == []
		assert [t["id"] for t in archived] == [task.id]
		assert archived[0]["archivedAt"] is not None
