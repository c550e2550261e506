"""Shared request helpers for the API tests."""

PASSWORD = "secret123"


async def sign_up(client, email, password=PASSWORD, address="1 Main St"):
    response = await client.post(
        "/v1/auth/signup", json={"email": email, "password": password, "address": address}
    )
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
