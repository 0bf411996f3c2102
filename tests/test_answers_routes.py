import uuid

import pytest

from conftest import PREFIX, bearer
from models import storage
from models.answer import Answer

CONTENT = "Usa scoped_session y ciérrala en el teardown."


@pytest.fixture
def post(api_client, student):
    resp = api_client.post(
        f"{PREFIX}/posts",
        json={"title": "¿Cómo manejo sesiones en Flask?", "description": "Detalles"},
        headers=bearer(student["accessToken"]),
    )
    return resp.get_json()["data"]


def answer(client, user, post_id, content=CONTENT):
    return client.post(
        f"{PREFIX}/answers", json={"content": content, "post_id": post_id}, headers=bearer(user["accessToken"])
    )


def answers_count(client, post_id):
    return client.get(f"{PREFIX}/posts/{post_id}").get_json()["data"]["answers_count"]


@pytest.fixture
def reply(api_client, other_student, post):
    resp = answer(api_client, other_student, post["id"])
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]


class TestCreate:
    def test_answer_increments_counter(self, api_client, reply, post, other_student):
        assert reply["author"]["id"] == other_student["id"]
        assert reply["post"]["id"] == post["id"]
        assert reply["likes_count"] == 0
        assert answers_count(api_client, post["id"]) == 1

    def test_content_too_short(self, api_client, other_student, post):
        resp = answer(api_client, other_student, post["id"], content="   corta   ")
        assert resp.status_code == 400

    def test_content_too_long(self, api_client, other_student, post):
        resp = answer(api_client, other_student, post["id"], content="x" * 10001)
        assert resp.status_code == 400

    def test_post_must_exist(self, api_client, other_student):
        assert answer(api_client, other_student, str(uuid.uuid4())).status_code == 404

    def test_post_id_must_be_uuid(self, api_client, other_student):
        assert answer(api_client, other_student, "not-a-uuid").status_code == 400

    def test_closed_post_rejects_answers(self, api_client, student, other_student, post):
        api_client.put(f"{PREFIX}/posts/{post['id']}", json={"status": "closed"}, headers=bearer(student["accessToken"]))
        resp = answer(api_client, other_student, post["id"])
        assert resp.status_code == 400


class TestRead:
    def test_list_and_filters(self, api_client, reply, post, other_student):
        by_post = api_client.get(f"{PREFIX}/answers?post_id={post['id']}").get_json()
        assert [a["id"] for a in by_post["data"]] == [reply["id"]]

        by_search = api_client.get(f"{PREFIX}/answers?search=teardown").get_json()
        assert by_search["meta"]["total"] == 1
        assert api_client.get(f"{PREFIX}/answers?search=nada").get_json()["meta"]["total"] == 0

        mine = api_client.get(f"{PREFIX}/answers/my/answers", headers=bearer(other_student["accessToken"]))
        assert mine.get_json()["meta"]["total"] == 1

    def test_answers_for_post(self, api_client, reply, post):
        resp = api_client.get(f"{PREFIX}/answers/post/{post['id']}")
        assert [a["id"] for a in resp.get_json()["data"]] == [reply["id"]]
        assert api_client.get(f"{PREFIX}/answers/post/nope").status_code == 404

    def test_get_one(self, api_client, reply):
        assert api_client.get(f"{PREFIX}/answers/{reply['id']}").get_json()["data"]["content"] == CONTENT


class TestUpdate:
    def test_author_edits(self, api_client, reply, other_student):
        resp = api_client.put(
            f"{PREFIX}/answers/{reply['id']}",
            json={"content": "Contenido corregido y ampliado"},
            headers=bearer(other_student["accessToken"]),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["content"] == "Contenido corregido y ampliado"

    def test_post_owner_cannot_edit(self, api_client, reply, student):
        resp = api_client.put(
            f"{PREFIX}/answers/{reply['id']}", json={"content": CONTENT}, headers=bearer(student["accessToken"])
        )
        assert resp.status_code == 403

    def test_closed_post_blocks_author_but_not_admin(self, api_client, reply, post, student, other_student, admin):
        api_client.put(f"{PREFIX}/posts/{post['id']}", json={"status": "closed"}, headers=bearer(student["accessToken"]))
        body = {"content": "Edición después del cierre"}

        by_author = api_client.put(f"{PREFIX}/answers/{reply['id']}", json=body, headers=bearer(other_student["accessToken"]))
        by_admin = api_client.put(f"{PREFIX}/answers/{reply['id']}", json=body, headers=bearer(admin["accessToken"]))
        assert by_author.status_code == 400
        assert by_admin.status_code == 200


class TestDeleteAndRestore:
    def test_post_owner_can_soft_delete(self, api_client, reply, post, student):
        resp = api_client.delete(f"{PREFIX}/answers/{reply['id']}/soft", headers=bearer(student["accessToken"]))
        assert resp.status_code == 200
        assert answers_count(api_client, post["id"]) == 0
        assert api_client.get(f"{PREFIX}/answers/{reply['id']}").status_code == 404

    def test_stranger_cannot_delete(self, api_client, reply):
        stranger = api_client.post(
            f"{PREFIX}/auth/register", json={"email": "eva@ueb.edu.ec", "password": "Secret123"}
        ).get_json()["data"]
        resp = api_client.delete(f"{PREFIX}/answers/{reply['id']}/soft", headers=bearer(stranger["accessToken"]))
        assert resp.status_code == 403

    def test_hard_delete_after_soft_delete_counts_once(self, api_client, reply, post, other_student):
        headers = bearer(other_student["accessToken"])
        api_client.delete(f"{PREFIX}/answers/{reply['id']}/soft", headers=headers)
        resp = api_client.delete(f"{PREFIX}/answers/{reply['id']}/hard", headers=headers)
        assert resp.status_code == 200
        assert answers_count(api_client, post["id"]) == 0
        assert storage.get(Answer, reply["id"]) is None
        storage.close()

    def test_restore(self, api_client, reply, post, other_student):
        headers = bearer(other_student["accessToken"])
        assert api_client.post(f"{PREFIX}/answers/{reply['id']}/restore", headers=headers).status_code == 400

        api_client.delete(f"{PREFIX}/answers/{reply['id']}/soft", headers=headers)
        resp = api_client.post(f"{PREFIX}/answers/{reply['id']}/restore", headers=headers)
        assert resp.status_code == 200
        assert answers_count(api_client, post["id"]) == 1


class TestLikes:
    def test_toggle_and_check(self, api_client, reply, student):
        headers = bearer(student["accessToken"])
        liked = api_client.post(f"{PREFIX}/answers/{reply['id']}/like", headers=headers).get_json()["data"]
        assert liked == {"likes_count": 1, "is_liked": True}
        assert api_client.get(f"{PREFIX}/answers/{reply['id']}").get_json()["data"]["likes_count"] == 1

        check = api_client.get(f"{PREFIX}/answers/{reply['id']}/check-like", headers=headers).get_json()["data"]
        assert check["has_liked"] is True

        unliked = api_client.post(f"{PREFIX}/answers/{reply['id']}/like", headers=headers).get_json()["data"]
        assert unliked == {"likes_count": 0, "is_liked": False}


def test_hard_deleting_a_user_fixes_counters(api_client, admin, reply, post, other_student):
    api_client.post(f"{PREFIX}/posts/{post['id']}/like", headers=bearer(other_student["accessToken"]))
    resp = api_client.delete(f"{PREFIX}/users/{other_student['id']}/hard", headers=bearer(admin["accessToken"]))
    assert resp.status_code == 200

    data = api_client.get(f"{PREFIX}/posts/{post['id']}").get_json()["data"]
    assert data["answers_count"] == 0
    assert data["likes_count"] == 0
