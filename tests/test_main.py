def test_index(client):
    response = client.get('/')

    assert response.status_code == 200
    assert response.get_json()['auth'] == '/auth'


def test_health(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json() == {'status': 'healthy', 'database': 'ok'}
