from app.core.config import settings
from app.services.ticket_changes import FieldChange, TicketChanges, TicketState, diff_ticket
from conftest import auth_headers, make_ticket

API = settings.api_prefix


def _state(**overrides) -> TicketState:
    values = {
        "title": "Login button broken",
        "description": "Clicking login does nothing",
        "status": "Open",
        "priority": "Medium",
        "assigned_to_id": None,
    }
    values.update(overrides)
    return TicketState(**values)


def test_diff_only_reports_changed_fields():
    changes = diff_ticket(_state(), _state(priority="High"))
    assert changes == TicketChanges(priority=FieldChange(old="Medium", new="High"))
    assert changes.fields() == ["priority"]


def test_diff_of_identical_states_is_empty():
    assert not diff_ticket(_state(), _state())


def test_diff_assignee_keeps_ids_and_display_names():
    changes = diff_ticket(_state(), _state(assigned_to_id=7, status="In Progress"), {7: "Carol Coder"})
    assert (changes.assigned_to.old_id, changes.assigned_to.new_id) == (None, 7)
    assert ("Assigned To", "Unassigned", "Carol Coder") in changes.rows()
    assert ("Status", "Open", "In Progress") in changes.rows()


def test_create_ticket(client, employee, project, mailer):
    r = client.post(
        f"{API}/projects/{project.id}/tickets",
        json={"title": "  Broken link ", "description": "Footer link 404s", "priority": "Low"},
        headers=auth_headers(employee),
    )
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["title"] == "Broken link"
    assert data["status"] == "Open"
    assert data["priority"] == "Low"
    assert data["projectId"] == project.id
    assert data["submitter"]["id"] == employee.id
    assert data["assignedTo"] is None
    assert mailer.sent == []


def test_create_ticket_requires_title(client, employee, project):
    r = client.post(
        f"{API}/projects/{project.id}/tickets",
        json={"title": " ", "description": "x"},
        headers=auth_headers(employee),
    )
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert "Please add a title" in r.json()["error"]


def test_create_ticket_in_missing_project(client, employee):
    r = client.post(
        f"{API}/projects/9999/tickets",
        json={"title": "t", "description": "d"},
        headers=auth_headers(employee),
    )
    assert r.status_code == 404


def test_create_with_assignee_mails_the_assignee(client, employee, other_employee, project, mailer):
    r = client.post(
        f"{API}/projects/{project.id}/tickets",
        json={"title": "Crash", "description": "Boom", "assignedTo": other_employee.id},
        headers=auth_headers(employee),
    )
    assert r.status_code == 201
    assert r.json()["data"]["assignedTo"]["name"] == "Carol Coder"
    assigned = mailer.of_type("ticket_assigned")
    assert len(assigned) == 1
    assert assigned[0].recipients == ["carol@example.com"]
    assert assigned[0].subject == "[BugTracker] New Ticket Assignment: Crash"
    assert f"http://tracker.test/projects/{project.id}" in assigned[0].body_text


def test_create_assigned_to_self_sends_nothing(client, employee, project, mailer):
    r = client.post(
        f"{API}/projects/{project.id}/tickets",
        json={"title": "Mine", "description": "Doing it myself", "assignedTo": employee.id},
        headers=auth_headers(employee),
    )
    assert r.status_code == 201
    assert mailer.sent == []


def test_create_with_unknown_assignee(client, employee, project):
    r = client.post(
        f"{API}/projects/{project.id}/tickets",
        json={"title": "t", "description": "d", "assignedTo": 4242},
        headers=auth_headers(employee),
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Assigned user not found"


def test_get_ticket_includes_project_description(client, session, employee, project):
    t = make_ticket(session, project, employee)
    r = client.get(f"{API}/tickets/{t.id}", headers=auth_headers(employee))
    assert r.status_code == 200
    assert r.json()["data"]["project"] == {"id": project.id, "name": "Core Platform", "description": "Main product backlog"}


def test_get_missing_ticket(client, employee):
    r = client.get(f"{API}/tickets/9999", headers=auth_headers(employee))
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Ticket not found"}


def test_priority_only_update_without_assignee_sends_nothing(client, session, employee, project, mailer):
    t = make_ticket(session, project, employee)
    r = client.put(f"{API}/tickets/{t.id}", json={"priority": "High"}, headers=auth_headers(employee))
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["priority"] == "High"
    assert data["title"] == "Login button broken"
    assert mailer.sent == []


def test_first_assignment_sends_assignment_and_update_mail(client, session, employee, other_employee, project, mailer):
    t = make_ticket(session, project, employee)
    r = client.put(f"{API}/tickets/{t.id}", json={"assignedTo": other_employee.id}, headers=auth_headers(employee))
    assert r.status_code == 200
    assert r.json()["data"]["assignedTo"]["id"] == other_employee.id

    assigned = mailer.of_type("ticket_assigned")
    updated = mailer.of_type("ticket_updated")
    assert len(assigned) == 1
    assert assigned[0].recipients == ["carol@example.com"]
    assert len(updated) == 1
    # the submitter is the actor here, so only the assignee hears about it
    assert updated[0].recipients == ["carol@example.com"]
    assert "Assigned To: Unassigned -> Carol Coder" in updated[0].body_text


def test_update_on_assigned_ticket_notifies_assignee_and_submitter(
    client, session, admin, employee, other_employee, project, mailer
):
    t = make_ticket(session, project, employee, assigned_to_id=other_employee.id)
    r = client.put(f"{API}/tickets/{t.id}", json={"status": "Closed"}, headers=auth_headers(admin))
    assert r.status_code == 200
    assert mailer.of_type("ticket_assigned") == []
    updated = mailer.of_type("ticket_updated")
    assert len(updated) == 1
    assert updated[0].recipients == ["carol@example.com", "bob@example.com"]
    assert updated[0].subject == "[BugTracker] Ticket Updated: Login button broken"
    assert "Status: Open -> Closed" in updated[0].body_text


def test_self_assignment_sends_no_assignment_mail(client, session, employee, other_employee, project, mailer):
    t = make_ticket(session, project, other_employee)
    r = client.put(f"{API}/tickets/{t.id}", json={"assignedTo": employee.id}, headers=auth_headers(employee))
    assert r.status_code == 200
    assert mailer.of_type("ticket_assigned") == []
    updated = mailer.of_type("ticket_updated")
    assert len(updated) == 1
    assert updated[0].recipients == ["carol@example.com"]


def test_update_with_no_changes_sends_nothing(client, session, employee, other_employee, project, mailer):
    t = make_ticket(session, project, employee, assigned_to_id=other_employee.id, priority="High")
    r = client.put(f"{API}/tickets/{t.id}", json={"priority": "High"}, headers=auth_headers(employee))
    assert r.status_code == 200
    assert mailer.sent == []


def test_blank_assignee_unassigns(client, session, employee, other_employee, project, mailer):
    t = make_ticket(session, project, employee, assigned_to_id=other_employee.id)
    r = client.put(f"{API}/tickets/{t.id}", json={"assignedTo": ""}, headers=auth_headers(employee))
    assert r.status_code == 200
    assert r.json()["data"]["assignedTo"] is None
    session.expire_all()
    assert t.assigned_to_id is None
    assert mailer.of_type("ticket_assigned") == []


def test_admin_unassigning_notifies_the_submitter(
    client, session, admin, employee, other_employee, project, mailer
):
    t = make_ticket(session, project, employee, assigned_to_id=other_employee.id)
    r = client.put(f"{API}/tickets/{t.id}", json={"assignedTo": None}, headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["data"]["assignedTo"] is None
    assert mailer.of_type("ticket_assigned") == []
    updated = mailer.of_type("ticket_updated")
    assert len(updated) == 1
    assert updated[0].recipients == ["bob@example.com"]
    assert "Assigned To: Carol Coder -> Unassigned" in updated[0].body_text


def test_update_with_unknown_assignee(client, session, employee, project):
    t = make_ticket(session, project, employee)
    r = client.put(f"{API}/tickets/{t.id}", json={"assignedTo": 4242}, headers=auth_headers(employee))
    assert r.status_code == 400
    assert r.json()["error"] == "Assigned user not found"


def test_update_rejects_null_title(client, session, employee, project):
    t = make_ticket(session, project, employee)
    r = client.put(f"{API}/tickets/{t.id}", json={"title": None}, headers=auth_headers(employee))
    assert r.status_code == 400


def test_update_rejects_unknown_status(client, session, employee, project):
    t = make_ticket(session, project, employee)
    r = client.put(f"{API}/tickets/{t.id}", json={"status": "Resolved"}, headers=auth_headers(employee))
    assert r.status_code == 400


def test_mail_failure_does_not_fail_the_update(client, session, employee, other_employee, project, mailer):
    mailer.fail = True
    t = make_ticket(session, project, employee)
    r = client.put(f"{API}/tickets/{t.id}", json={"assignedTo": other_employee.id}, headers=auth_headers(employee))
    assert r.status_code == 200
    assert r.json()["data"]["assignedTo"]["id"] == other_employee.id
    assert mailer.sent == []


def test_unconfigured_mailer_sends_nothing(client, session, employee, other_employee, project, mailer):
    mailer.configured = False
    t = make_ticket(session, project, employee)
    r = client.put(f"{API}/tickets/{t.id}", json={"assignedTo": other_employee.id}, headers=auth_headers(employee))
    assert r.status_code == 200
    assert mailer.sent == []


def test_delete_ticket_is_admin_only(client, session, employee, project):
    t = make_ticket(session, project, employee)
    r = client.delete(f"{API}/tickets/{t.id}", headers=auth_headers(employee))
    assert r.status_code == 403
    assert r.json()["error"] == "Only admin users can delete tickets"


def test_admin_deletes_ticket(client, session, admin, employee, project):
    t = make_ticket(session, project, employee)
    ticket_id = t.id
    r = client.delete(f"{API}/tickets/{ticket_id}", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {}}
    assert client.get(f"{API}/tickets/{ticket_id}", headers=auth_headers(admin)).status_code == 404


def test_delete_missing_ticket(client, admin):
    r = client.delete(f"{API}/tickets/9999", headers=auth_headers(admin))
    assert r.status_code == 404


def test_out_of_range_ids_are_rejected(client, session, admin, employee, project):
    t = make_ticket(session, project, employee)
    huge = 10**20
    headers = auth_headers(admin)

    r = client.get(f"{API}/tickets/{huge}", headers=headers)
    assert r.status_code == 400
    assert r.json()["success"] is False

    r = client.put(f"{API}/tickets/{t.id}", json={"assignedTo": huge}, headers=headers)
    assert r.status_code == 400

    r = client.post(f"{API}/projects/{project.id}/tickets", json={"title": "t", "description": "d", "assignedTo": huge}, headers=headers)
    assert r.status_code == 400

    assert client.delete(f"{API}/users/{huge}", headers=headers).status_code == 400
    assert client.get(f"{API}/projects/{huge}", headers=headers).status_code == 400
