"""Product listing, editing and deletion tests."""

import models
from conftest import create_product


def test_create_product_defaults(client, alice):
    """Test that a new listing starts available with default quantity."""
    product_id = create_product(client, alice['headers'])

    response = client.get(f'/products/{product_id}')

    assert response.status_code == 200
    data = response.json()
    assert data['title'] == 'Desk'
    assert data['category'] == 'furniture'
    assert data['condition_desc'] == 'used'
    assert data['price'] == 50
    assert data['quantity'] == 1
    assert data['status'] == 'available'
    assert data['is_sold'] is False
    assert data['sold_to'] is None
    assert data['username'] == 'alice'
    assert data['likes_count'] == 0
    assert data['image_url'] is None


def test_price_defaults_to_zero(client, alice):
    response = client.post(
        '/products',
        data={'title': 'Lamp', 'description': 'Free lamp', 'category': 'home', 'condition_desc': 'worn'},
        headers=alice['headers'],
    )

    product = client.get(f"/products/{response.json()['productId']}").json()
    assert product['price'] == 0


def test_create_product_requires_fields(client, alice):
    response = client.post(
        '/products',
        data={'title': 'Desk', 'description': 'Oak', 'category': ''},
        headers=alice['headers'],
    )

    assert response.status_code == 400
    assert 'category' in response.json()['detail']
    assert 'condition_desc' in response.json()['detail']


def test_create_product_rejects_negative_price(client, alice):
    response = client.post(
        '/products',
        data={'title': 'Desk', 'description': 'Oak', 'category': 'furniture',
              'condition_desc': 'used', 'price': '-5'},
        headers=alice['headers'],
    )

    assert response.status_code == 400


def test_create_product_requires_login(client):
    response = client.post('/products', data={'title': 'Desk'})

    assert response.status_code == 401


def test_create_product_with_image(client, alice):
    response = client.post(
        '/products',
        data={'title': 'Desk', 'description': 'Oak', 'category': 'furniture', 'condition_desc': 'used'},
        files={'image': ('desk.jpg', b'jpeg bytes', 'image/jpeg')},
        headers=alice['headers'],
    )

    product = client.get(f"/products/{response.json()['productId']}").json()
    assert product['image_url'].startswith('/uploads/')
    assert client.get(product['image_url']).content == b'jpeg bytes'


def test_get_missing_product(client):
    response = client.get('/products/404')

    assert response.status_code == 404


def test_list_products_filters_and_orders(client, alice, bob):
    """Test category and search filters with newest-first ordering."""
    desk = create_product(client, alice['headers'])
    chair = create_product(client, alice['headers'], title='Chair', description='Wooden CHAIR')
    phone = create_product(client, bob['headers'], title='Phone', description='Smartphone',
                           category='electronics')

    everything = client.get('/products').json()
    furniture = client.get('/products', params={'category': 'furniture'}).json()
    all_category = client.get('/products', params={'category': 'all'}).json()
    searched = client.get('/products', params={'search': 'chair'}).json()
    both = client.get('/products', params={'category': 'electronics', 'search': 'smart'}).json()

    assert [p['id'] for p in everything] == [phone, chair, desk]
    assert [p['id'] for p in furniture] == [chair, desk]
    assert len(all_category) == 3
    assert [p['id'] for p in searched] == [chair]
    assert [p['id'] for p in both] == [phone]
    assert everything[0]['username'] == 'bob'


def test_search_treats_wildcards_literally(client, alice, desk):
    discount = create_product(client, alice['headers'], title='Lamp 50% off', description='Desk lamp')

    underscore = client.get('/products', params={'search': '_'}).json()
    percent = client.get('/products', params={'search': '%'}).json()

    assert underscore == []
    assert [p['id'] for p in percent] == [discount]


def test_list_own_products(client, alice, bob, desk):
    create_product(client, bob['headers'], title='Phone')

    response = client.get('/user/products', headers=alice['headers'])

    assert [p['id'] for p in response.json()] == [desk]


def test_update_product_records_history(client, alice, desk):
    """Test that one edit record holds old and new values of changed fields only."""
    response = client.put(
        f'/products/{desk}',
        data={'title': 'Standing desk', 'price': '80', 'category': 'furniture'},
        headers=alice['headers'],
    )

    assert response.status_code == 200
    product = response.json()['product']
    assert product['title'] == 'Standing desk'
    assert product['price'] == 80
    assert product['description'] == 'Solid oak writing desk'
    assert product['updated_at'] is not None

    history = client.get(f'/products/{desk}/history', headers=alice['headers']).json()
    assert len(history) == 1
    assert history[0]['old_data'] == {'title': 'Desk', 'price': 50}
    assert history[0]['new_data'] == {'title': 'Standing desk', 'price': 80}
    assert history[0]['user_id'] == alice['id']


def test_history_is_newest_first(client, alice, desk):
    client.put(f'/products/{desk}', data={'price': '60'}, headers=alice['headers'])
    client.put(f'/products/{desk}', data={'price': '70'}, headers=alice['headers'])

    history = client.get(f'/products/{desk}/history', headers=alice['headers']).json()

    assert [h['new_data']['price'] for h in history] == [70, 60]


def test_update_without_changes_records_nothing(client, alice, desk):
    response = client.put(f'/products/{desk}', data={'title': 'Desk', 'price': '50'}, headers=alice['headers'])

    assert response.status_code == 200
    assert response.json()['product']['updated_at'] is None
    assert client.get(f'/products/{desk}/history', headers=alice['headers']).json() == []


def test_update_by_non_owner_is_forbidden(client, bob, desk):
    response = client.put(f'/products/{desk}', data={'title': 'Mine'}, headers=bob['headers'])

    assert response.status_code == 403


def test_history_is_owner_only(client, bob, desk):
    response = client.get(f'/products/{desk}/history', headers=bob['headers'])

    assert response.status_code == 403


def test_update_missing_product(client, alice):
    response = client.put('/products/77', data={'title': 'x'}, headers=alice['headers'])

    assert response.status_code == 404


def test_sold_product_cannot_be_edited_or_deleted(client, alice, desk, db_session):
    product = db_session.get(models.Product, desk)
    product.is_sold = True
    product.status = models.STATUS_SOLD
    product.sold_to = alice['id']
    db_session.commit()

    edit = client.put(f'/products/{desk}', data={'title': 'New'}, headers=alice['headers'])
    delete = client.delete(f'/products/{desk}', headers=alice['headers'])

    assert edit.status_code == 400
    assert delete.status_code == 400
    assert client.get(f'/products/{desk}').status_code == 200


def test_delete_product_cascades(client, alice, bob, desk):
    """Test that dependents go away while notifications are kept."""
    client.post('/likes', json={'productId': desk}, headers=bob['headers'])
    client.post('/favorites', json={'productId': desk}, headers=bob['headers'])
    client.post('/cart', json={'productId': desk}, headers=bob['headers'])
    client.post('/comments', json={'product_id': desk, 'content': 'Nice'}, headers=bob['headers'])
    client.post('/purchase-request', json={'product_id': desk}, headers=bob['headers'])

    response = client.delete(f'/products/{desk}', headers=alice['headers'])

    assert response.status_code == 200
    assert client.get(f'/products/{desk}').status_code == 404
    assert client.get(f'/comments/{desk}').json() == []
    assert client.get('/user/favorites', headers=bob['headers']).json() == []
    assert client.get('/user/cart', headers=bob['headers']).json() == []

    inbox = client.get('/notifications', headers=alice['headers']).json()
    request = next(n for n in inbox if n['type'] == 'purchase_request')
    assert request['status'] == 'cancelled'
    assert request['product_id'] is None
    assert request['product_title'] == 'Desk'


def test_delete_by_non_owner_is_forbidden(client, bob, desk):
    response = client.delete(f'/products/{desk}', headers=bob['headers'])

    assert response.status_code == 403
