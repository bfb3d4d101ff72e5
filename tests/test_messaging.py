"""Private conversation tests."""

from conftest import create_product


def _open(client, user, other_id, **extra):
    return client.post('/conversations', json={'other_user_id': other_id, **extra}, headers=user['headers'])


def _send(client, user, conversation_id, content):
    return client.post(
        f'/conversations/{conversation_id}/messages', json={'content': content}, headers=user['headers']
    )


def test_conversation_is_reused_per_product(client, alice, bob, desk):
    """Test that the same pair and product share one conversation."""
    chair = create_product(client, alice['headers'], title='Chair')

    first = _open(client, bob, alice['id'], product_id=desk, product_title='Desk')
    again = _open(client, alice, bob['id'], product_id=desk)
    other = _open(client, bob, alice['id'], product_id=chair)

    assert first.status_code == 200
    assert first.json()['id'] == again.json()['id']
    assert other.json()['id'] != first.json()['id']
    assert other.json()['product_title'] == 'Chair'


def test_conversation_without_product_reuses_any(client, alice, bob, desk):
    with_product = _open(client, bob, alice['id'], product_id=desk).json()

    general = _open(client, bob, alice['id']).json()

    assert general['id'] == with_product['id']


def test_cannot_talk_to_yourself(client, alice):
    assert _open(client, alice, alice['id']).status_code == 400
    assert client.post('/conversations', json={}, headers=alice['headers']).status_code == 400


def test_unknown_other_user(client, alice):
    assert _open(client, alice, 999).status_code == 404


def test_unknown_product(client, alice, bob):
    response = _open(client, bob, alice['id'], product_id=999)

    assert response.status_code == 404
    assert client.get('/conversations', headers=bob['headers']).json() == []


def test_product_title_comes_from_listing(client, alice, bob, desk):
    conversation = _open(client, bob, alice['id'], product_id=desk, product_title='Something else').json()

    assert conversation['product_title'] == 'Desk'


def test_send_and_list_messages(client, alice, bob):
    conversation_id = _open(client, bob, alice['id']).json()['id']

    _send(client, bob, conversation_id, 'Hi Alice')
    reply = _send(client, alice, conversation_id, 'Hi Bob')

    assert reply.status_code == 200
    assert reply.json()['is_read'] is False
    messages = client.get(f'/conversations/{conversation_id}/messages', headers=alice['headers']).json()
    assert [(m['sender_id'], m['content']) for m in messages] == [
        (bob['id'], 'Hi Alice'),
        (alice['id'], 'Hi Bob'),
    ]


def test_message_notification_preview_is_truncated(client, alice, bob):
    conversation_id = _open(client, bob, alice['id']).json()['id']

    _send(client, bob, conversation_id, 'x' * 80)

    [notification] = client.get('/notifications', headers=alice['headers']).json()
    assert notification['type'] == 'private_message'
    assert notification['conversation_id'] == conversation_id
    assert notification['sender_name'] == 'bob'
    assert notification['content'].endswith('x' * 50 + '...')
    assert 'x' * 51 not in notification['content']


def test_initial_message_is_sent(client, alice, bob, desk):
    conversation = _open(client, bob, alice['id'], product_id=desk, initial_message='Still for sale?').json()

    messages = client.get(f"/conversations/{conversation['id']}/messages", headers=bob['headers']).json()

    assert [m['content'] for m in messages] == ['Still for sale?']


def test_outsiders_are_forbidden(client, alice, bob, carol):
    conversation_id = _open(client, bob, alice['id']).json()['id']

    assert _send(client, carol, conversation_id, 'hello').status_code == 403
    assert client.get(f'/conversations/{conversation_id}/messages',
                      headers=carol['headers']).status_code == 403
    assert client.put(f'/conversations/{conversation_id}/read',
                      headers=carol['headers']).status_code == 403


def test_blank_message_rejected(client, alice, bob):
    conversation_id = _open(client, bob, alice['id']).json()['id']

    assert _send(client, bob, conversation_id, '   ').status_code == 400


def test_mark_conversation_read(client, alice, bob):
    """Test that reading clears the other party's messages and notifications."""
    conversation_id = _open(client, bob, alice['id']).json()['id']
    _send(client, bob, conversation_id, 'one')
    _send(client, bob, conversation_id, 'two')
    _send(client, alice, conversation_id, 'three')

    response = client.put(f'/conversations/{conversation_id}/read', headers=alice['headers'])

    assert response.json() == {'success': True}
    messages = client.get(f'/conversations/{conversation_id}/messages', headers=alice['headers']).json()
    assert [m['is_read'] for m in messages] == [True, True, False]
    assert all(n['is_read'] for n in client.get('/notifications', headers=alice['headers']).json())
    assert not any(n['is_read'] for n in client.get('/notifications', headers=bob['headers']).json())


def test_list_conversations_by_latest_activity(client, alice, bob, carol):
    with_bob = _open(client, alice, bob['id']).json()['id']
    with_carol = _open(client, alice, carol['id']).json()['id']
    _send(client, carol, with_carol, 'from carol')
    _send(client, bob, with_bob, 'from bob')
    _send(client, bob, with_bob, 'again from bob')

    conversations = client.get('/conversations', headers=alice['headers']).json()

    assert [c['id'] for c in conversations] == [with_bob, with_carol]
    latest = conversations[0]
    assert latest['other_user']['username'] == 'bob'
    assert latest['latest_message']['content'] == 'again from bob'
    assert latest['unread_count'] == 2
    assert conversations[1]['unread_count'] == 1

    bob_view = client.get('/conversations', headers=bob['headers']).json()
    assert bob_view[0]['unread_count'] == 0
    assert bob_view[0]['other_user']['username'] == 'alice'


def test_empty_conversation_is_listed(client, alice, bob):
    conversation_id = _open(client, alice, bob['id']).json()['id']

    [conversation] = client.get('/conversations', headers=bob['headers']).json()

    assert conversation['id'] == conversation_id
    assert conversation['latest_message'] is None
    assert conversation['unread_count'] == 0
