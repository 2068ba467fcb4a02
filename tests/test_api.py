from datetime import timedelta

import pytest

from app.election.realtime import RealtimeEvent
from app.election_auth.auth_bearer import encodeJWT
from app.election_auth.model.enums import UserRole

from conftest import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    STUDENT_PASSWORD,
    add_admin,
    add_candidate,
    add_posts,
    add_student,
    bearer,
    get_candidate,
    get_student,
    open_post,
    student_headers,
)


# ----- Auth -----


def test_admin_login(client):
    add_admin()

    response = client.post("/auth/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

    assert response.status_code == 200
    assert response.json()["token"]
    assert response.json()["admin"]["email"] == ADMIN_EMAIL


def test_admin_login_with_a_wrong_password(client):
    add_admin()

    response = client.post("/auth/admin/login", json={"email": ADMIN_EMAIL, "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid credentials", "error": "AuthError"}


def test_admin_login_without_fields(client):
    response = client.post("/auth/admin/login", json={"email": ADMIN_EMAIL})

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


def test_student_login(client):
    add_posts("President")
    add_student("21CS001", password=STUDENT_PASSWORD)

    response = client.post("/auth/student/login", json={"registerNo": "21CS001", "password": STUDENT_PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token"]
    assert body["student"]["registerNo"] == "21CS001"
    assert body["student"]["hasVotedAll"] is False
    assert "password" not in body["student"]


def test_admin_routes_need_a_token(client):
    response = client.get("/admin/control")

    assert response.status_code == 401
    assert response.json()["error"] == "AuthError"


def test_admin_routes_reject_student_tokens(client):
    add_student("21CS001")

    response = client.get("/admin/control", headers=student_headers("21CS001"))

    assert response.status_code == 403
    assert response.json()["error"] == "PermissionDeniedError"


def test_expired_token(client):
    public_id = add_admin()
    token = encodeJWT({"public_id": public_id, "role": UserRole.admin.value}, expires_in=timedelta(seconds=-5))

    response = client.get("/admin/control", headers=bearer(token))

    assert response.status_code == 401
    assert response.json()["detail"] == "Token expired. Please login again."


def test_malformed_token(client):
    response = client.get("/admin/control", headers=bearer("not-a-jwt"))

    assert response.status_code == 401


# ----- Session control -----


def test_voting_session_over_http(client, admin_headers):
    add_posts("President", "Secretary")

    response = client.post("/admin/control/start", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    assert response.json()["currentPost"] == "President"
    assert response.json()["remainingTime"] == 60

    response = client.post("/admin/control/start", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "VotingInProgressError"

    response = client.post("/admin/control/next", headers=admin_headers)
    assert response.json()["currentPost"] == "Secretary"
    assert response.json()["currentPostIndex"] == 1

    response = client.post("/admin/control/end", headers=admin_headers)
    assert response.json()["status"] == "ended"
    assert response.json()["currentPost"] is None

    response = client.post("/admin/control/next", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "VotingClosedError"


def test_start_without_posts(client, admin_headers):
    response = client.post("/admin/control/start", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "ConfigError"


def test_restore_posts_is_idempotent(client, admin_headers):
    first = client.post("/admin/posts/restore", headers=admin_headers).json()
    second = client.post("/admin/posts/restore", headers=admin_headers).json()

    assert first == second
    assert [post["name"] for post in first][:2] == ["President", "Vice President"]
    assert len(first) == 8


# ----- Voting -----


@pytest.fixture
def president_only():
    add_posts("President")
    candidate_id = add_candidate("Asha", "President")
    add_student("21CS001", password=STUDENT_PASSWORD)
    open_post("President")
    return candidate_id


def test_last_vote_locks_the_student_out(client, president_only):
    response = client.post(
        "/vote",
        json={"studentRegisterNo": "21CS001", "post": "President", "candidateId": president_only},
        headers=student_headers("21CS001"),
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Vote submitted successfully", "hasVotedAll": True}

    response = client.post("/auth/student/login", json={"registerNo": "21CS001", "password": STUDENT_PASSWORD})
    assert response.status_code == 403
    assert response.json() == {"detail": "You have already cast your vote.", "error": "AlreadyVotedError"}


def test_vote_as_another_student(client, president_only):
    add_student("21CS002")

    response = client.post(
        "/vote",
        json={"studentRegisterNo": "21CS002", "post": "President", "candidateId": president_only},
        headers=student_headers("21CS001"),
    )

    assert response.status_code == 403
    assert get_student("21CS002").voted_posts == {}


def test_vote_errors_map_to_statuses(client, president_only):
    headers = student_headers("21CS001")

    response = client.post("/vote", json={"studentRegisterNo": "21CS001", "post": "President"}, headers=headers)
    assert (response.status_code, response.json()["error"]) == (400, "ValidationError")

    response = client.post(
        "/vote", json={"studentRegisterNo": "21CS001", "post": "Secretary", "candidateId": president_only},
        headers=headers,
    )
    assert (response.status_code, response.json()["error"]) == (400, "VotingClosedError")

    response = client.post(
        "/vote", json={"studentRegisterNo": "21CS001", "post": "President", "candidateId": 9999},
        headers=headers,
    )
    assert (response.status_code, response.json()["error"]) == (400, "InvalidCandidateError")


def test_duplicate_vote_status(client):
    add_posts("President", "Secretary")
    first = add_candidate("Asha", "President")
    second = add_candidate("Bala", "President")
    add_student("21CS001")
    open_post("President")
    headers = student_headers("21CS001")

    response = client.post(
        "/vote", json={"studentRegisterNo": "21CS001", "post": "President", "candidateId": first}, headers=headers
    )
    assert response.json()["hasVotedAll"] is False

    response = client.post(
        "/vote", json={"studentRegisterNo": "21CS001", "post": "President", "candidateId": second}, headers=headers
    )
    assert response.status_code == 409
    assert response.json()["error"] == "DuplicateVoteError"


def test_current_post_for_a_student(client, president_only):
    response = client.get("/student/posts/current", headers=student_headers("21CS001"))

    assert response.status_code == 200
    body = response.json()
    assert body["currentPost"] == "President"
    assert 0 < body["remainingTime"] <= 60
    assert body["hasVoted"] is False
    assert [candidate["name"] for candidate in body["candidates"]] == ["Asha"]
    assert "voteCount" not in body["candidates"][0]


# ----- Public projections -----


def test_public_candidates_hide_vote_counts(client, president_only):
    response = client.get("/candidates/President")

    assert response.status_code == 200
    [candidate] = response.json()
    assert candidate["name"] == "Asha"
    assert candidate["post"] == "President"
    assert "voteCount" not in candidate


def test_candidates_of_an_unknown_post(client):
    response = client.get("/candidates/Mascot")

    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


def test_results_and_committee_after_announce(client, admin_headers, president_only):
    client.post(
        "/vote",
        json={"studentRegisterNo": "21CS001", "post": "President", "candidateId": president_only},
        headers=student_headers("21CS001"),
    )
    assert client.get("/results").json() == []

    response = client.post("/admin/announce/President", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["winner"]["name"] == "Asha"

    [result] = client.get("/results").json()
    assert result["winnerName"] == "Asha"
    assert result["totalVotesPerCandidate"] == [{"candidateId": president_only, "name": "Asha", "votes": 1}]

    [seat] = client.get("/forum-committee").json()
    assert (seat["post"], seat["name"]) == ("President", "Asha")


def test_announce_post_without_candidates(client, admin_headers):
    add_posts("President")

    response = client.post("/admin/announce/President", headers=admin_headers)

    assert response.status_code == 404


# ----- Administration -----


def test_candidate_administration(client, admin_headers):
    add_posts("President")

    response = client.post(
        "/admin/candidates",
        json={"name": "Asha", "post": "President", "department": "CSE", "year": "3", "manifesto": "Open labs"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    candidate = response.json()
    assert candidate["voteCount"] == 0
    assert candidate["photoUrl"] == ""

    response = client.put(
        f"/admin/candidates/{candidate['id']}", json={"manifesto": "Open labs, late library", "name": ""},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["manifesto"] == "Open labs, late library"
    assert response.json()["name"] == "Asha"

    response = client.delete(f"/admin/candidates/{candidate['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get("/admin/candidates", headers=admin_headers).json() == []

    response = client.delete(f"/admin/candidates/{candidate['id']}", headers=admin_headers)
    assert response.status_code == 404


def test_candidate_with_an_unknown_post(client, admin_headers):
    response = client.post(
        "/admin/candidates",
        json={"name": "Asha", "post": "Mascot", "department": "CSE", "year": "3", "manifesto": "Open labs"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


def test_deleting_a_candidate_deletes_its_votes(client, admin_headers, president_only):
    client.post(
        "/vote",
        json={"studentRegisterNo": "21CS001", "post": "President", "candidateId": president_only},
        headers=student_headers("21CS001"),
    )

    client.delete(f"/admin/candidates/{president_only}", headers=admin_headers)

    totals = client.get("/admin/post-totals", headers=admin_headers).json()
    assert totals == [{"post": "President", "totalVotes": 0}]


def test_reconcile_rewrites_cached_counts(client, admin_headers, president_only):
    client.post(
        "/vote",
        json={"studentRegisterNo": "21CS001", "post": "President", "candidateId": president_only},
        headers=student_headers("21CS001"),
    )
    assert get_candidate(president_only).vote_count == 1

    [candidate] = client.post("/admin/reconcile", headers=admin_headers).json()

    assert candidate["voteCount"] == 1


def test_add_student(client, admin_headers):
    student = {"registerNo": "21CS001", "name": "Divya", "department": "CSE", "year": "2", "password": "pw"}

    response = client.post("/admin/students", json=student, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["votedPosts"] == {}

    response = client.post("/admin/students", json=student, headers=admin_headers)
    assert response.status_code == 400


def test_import_students_from_csv(client, admin_headers):
    add_student("21CS001")
    content = (
        "registerNo,name,Password,year,department\n"
        "21CS001,Existing,pw,2,CSE\n"
        "21CS002,Divya,pw,2,CSE\n"
        "21CS003,Ezhil,pw,3,ECE\n"
        "21CS004,,pw,3,ECE\n"
    )

    response = client.post(
        "/admin/students/import",
        files={"file": ("students.csv", content.encode("utf-8"), "text/csv")},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["imported"], body["total"]) == (2, 4)
    assert "Row 5: Missing required fields" in body["errors"]
    assert get_student("21CS003").name == "Ezhil"
    assert get_student("21CS002").check_password("pw")


def test_logs_record_the_session_events(client, admin_headers):
    add_posts("President")
    client.post("/admin/control/start", headers=admin_headers)
    client.post("/admin/control/end", headers=admin_headers)

    events = [log["event"] for log in client.get("/admin/logs", headers=admin_headers).json()]

    assert "voting_started" in events
    assert "voting_ended" in events


def test_logs_are_paged(client, admin_headers):
    add_posts("President")
    client.post("/admin/control/start", headers=admin_headers)
    client.post("/admin/control/end", headers=admin_headers)

    def page(number):
        response = client.get(f"/admin/logs?page={number}&page_size=1", headers=admin_headers)
        return [log["event"] for log in response.json()]

    assert page(0) == ["voting_started"]
    assert page(1) == ["voting_ended"]
    assert page(2) == []


# ----- Realtime -----


def test_websocket_gets_a_snapshot_then_broadcasts(client, admin_headers):
    add_posts("President")

    with client.websocket_connect("/ws") as websocket:
        assert websocket.receive_json() == {
            "event": RealtimeEvent.SESSION_STATUS, "data": {"status": "not_started"}
        }
        websocket.send_json({"event": "joinVoting", "data": {"registerNo": "21CS001"}})

        client.post("/admin/control/start", headers=admin_headers)

        assert websocket.receive_json()["data"] == {"status": "in_progress"}
        assert websocket.receive_json()["event"] == RealtimeEvent.SESSION_STARTED
        assert websocket.receive_json() == {
            "event": RealtimeEvent.SHOW_POST, "data": {"post": "President", "remainingTime": 60}
        }


def test_websocket_snapshot_of_an_open_session(client):
    add_posts("President")
    open_post("President")

    with client.websocket_connect("/ws") as websocket:
        events = [websocket.receive_json() for _ in range(3)]

    assert [event["event"] for event in events] == [
        RealtimeEvent.SESSION_STATUS, RealtimeEvent.SESSION_STARTED, RealtimeEvent.SHOW_POST
    ]
    assert events[2]["data"]["post"] == "President"
    assert 58 <= events[2]["data"]["remainingTime"] <= 60
