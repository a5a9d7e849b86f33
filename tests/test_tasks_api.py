"""HTTP tests for the /api/v1/tasks blueprint."""

import pytest

from models import Priority, Status

BASE = '/api/v1/tasks'


@pytest.fixture()
def user_id(create_user):
    return create_user()


@pytest.fixture()
def headers(auth_headers, user_id):
    return auth_headers(user_id)


@pytest.fixture()
def seeded(create_task):
    return [
        create_task(title='Write docs', status=Status.PENDING, priority=Priority.LOW),
        create_task(title='Fix bug', status=Status.IN_PROGRESS, priority=Priority.HIGH),
        create_task(title='Write tests', status=Status.PENDING, priority=Priority.HIGH),
    ]


def test_requires_token(client):
    assert client.get(BASE).status_code == 401


def test_create_task_with_defaults(client, headers):
    response = client.post(BASE, json={'title': 'New task', 'description': 'Do the thing'}, headers=headers)

    assert response.status_code == 201
    task = response.get_json()['task']
    assert task['status'] == 'PENDING'
    assert task['priority'] == 'MEDIUM'
    assert task['executors'] == []


def test_create_task_validation(client, headers):
    response = client.post(BASE, json={'title': '', 'description': 'x'}, headers=headers)
    assert response.status_code == 400
    assert 'title' in response.get_json()['details']


def test_create_task_with_unknown_priority(client, headers):
    response = client.post(BASE, json={'title': 't', 'description': 'd', 'priority': 'urgent'}, headers=headers)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'invalid_value'


def test_list_and_filter(client, headers, seeded):
    everything = client.get(BASE, headers=headers).get_json()
    by_title = client.get(f'{BASE}?title=Write', headers=headers).get_json()
    by_enums = client.get(f'{BASE}?status=pending&priority=high', headers=headers).get_json()
    paged = client.get(f'{BASE}?priority=HIGH&page=0&limit=1', headers=headers).get_json()

    assert [t['id'] for t in everything] == seeded
    assert [t['title'] for t in by_title] == ['Write docs', 'Write tests']
    assert [t['id'] for t in by_enums] == [seeded[2]]
    assert [t['id'] for t in paged] == [seeded[1]]


def test_filter_with_unknown_status(client, headers, seeded):
    response = client.get(f'{BASE}?status=archived', headers=headers)
    assert response.status_code == 400


def test_get_by_id_and_title(client, headers, seeded):
    assert client.get(f'{BASE}/{seeded[1]}', headers=headers).get_json()['title'] == 'Fix bug'
    assert client.get(f'{BASE}/title/Fix%20bug', headers=headers).get_json()['id'] == seeded[1]
    assert client.get(f'{BASE}/999', headers=headers).status_code == 404


def test_update_task(client, headers, seeded):
    response = client.patch(f'{BASE}/{seeded[0]}', json={'status': 'completed'}, headers=headers)

    assert response.status_code == 200
    body = response.get_json()
    assert body['message'] == 'Task updated successfully'
    assert body['task']['status'] == 'COMPLETED'
    assert body['task']['title'] == 'Write docs'


def test_assign_and_delete(client, headers, seeded, user_id, create_comment):
    create_comment(seeded[0], user_id)

    first = client.post(f'{BASE}/{seeded[0]}/executors/{user_id}', headers=headers)
    second = client.post(f'{BASE}/{seeded[0]}/executors/{user_id}', headers=headers)

    assert first.status_code == 200
    assert second.status_code == 409
    assert client.get(f'{BASE}/{seeded[0]}', headers=headers).get_json()['executors'] == [user_id]

    assert client.delete(f'{BASE}/{seeded[0]}', headers=headers).status_code == 200
    assert client.get(f'{BASE}/{seeded[0]}', headers=headers).status_code == 404
    assert client.get(f'/api/v1/comments/task/{seeded[0]}', headers=headers).get_json() == []


def test_assign_unknown_user(client, headers, seeded):
    response = client.post(f'{BASE}/{seeded[0]}/executors/999', headers=headers)
    assert response.status_code == 404
    assert response.get_json()['error'] == 'user_not_found'


@pytest.mark.parametrize('field', ['status', 'priority'])
def test_create_task_with_empty_enum_is_rejected(client, headers, field):
    response = client.post(BASE, json={'title': 't', 'description': 'd', field: ''}, headers=headers)

    assert response.status_code == 400
    assert response.get_json()['error'] == 'invalid_value'
    assert client.get(BASE, headers=headers).get_json() == []


def test_huge_page_is_rejected(client, headers, seeded):
    response = client.get(f'{BASE}?page=100000000000000000000&limit=5', headers=headers)
    assert response.status_code == 400


def test_huge_ids_are_not_found(client, headers, seeded):
    huge = 10 ** 20
    assert client.get(f'{BASE}/{huge}', headers=headers).status_code == 404
    assert client.post(f'{BASE}/{seeded[0]}/executors/{huge}', headers=headers).status_code == 404
    assert client.get(f'/api/v1/users/{huge}', headers=headers).status_code == 404
