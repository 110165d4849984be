from bnoverseas.models.user import User


def test_get_profile_requires_authentication(client) -> None:
    assert client.get('/auth/profile').status_code == 401


def test_get_profile_returns_current_user(client, make_user, access_token_for) -> None:
    user = make_user(phone='+91 98450 12345')

    response = client.get('/auth/profile', headers={'Authorization': f'Bearer {access_token_for(user)}'})

    assert response.status_code == 200
    body = response.json()['user']
    assert body['phone'] == '+91 98450 12345'
    assert body['profile']['interestedCountries'] == ['Canada']


def test_update_profile_changes_user_and_profile_fields(client, db, make_user, access_token_for) -> None:
    user = make_user()

    response = client.put(
        '/auth/profile',
        json={
            'firstName': 'Ananya',
            'profile': {'city': 'Kochi', 'interestedCountries': ['Canada', 'Germany'], 'dateOfBirth': '2003-04-12'},
        },
        headers={'Authorization': f'Bearer {access_token_for(user)}'},
    )

    assert response.status_code == 200
    assert response.json()['message'] == 'Profile updated successfully'
    db.expire_all()
    updated = db.get(User, user.id)
    assert updated.first_name == 'Ananya'
    assert updated.last_name == 'Rao'
    assert updated.profile.city == 'Kochi'
    assert updated.profile.interested_countries == ['Canada', 'Germany']
    assert updated.profile.date_of_birth.isoformat() == '2003-04-12'


def test_update_profile_validates_names(client, make_user, access_token_for) -> None:
    user = make_user()

    response = client.put(
        '/auth/profile',
        json={'firstName': 'A'},
        headers={'Authorization': f'Bearer {access_token_for(user)}'},
    )

    assert response.status_code == 400
