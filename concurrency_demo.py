"""Fire concurrent join requests at one ride through the in-process ASGI app.
Shows how many joins succeed against the seat count; no server needed.
Run: python concurrency_demo.py
"""
import asyncio
from main import app
from sample_data import seed
from db import get_session
from models import Ride
from datetime import datetime, timedelta
import httpx


async def run(n_joins=8):
    tokens = seed(n_users=n_joins + 1, n_rides=0)
    creator_id, _ = tokens[0]
    session = get_session()
    ride = Ride(
        creator_id=creator_id,
        from_address="Main Gate", from_lng=78.47, from_lat=17.40,
        to_address="Tech Park", to_lng=78.50, to_lat=17.45,
        departure_time=datetime.utcnow() + timedelta(hours=2),
        available_seats=2,
    )
    session.add(ride)
    session.commit()
    session.refresh(ride)
    ride_id = ride.id
    session.close()

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        tasks = [
            client.post(f"/rides/{ride_id}/join", headers={"Authorization": f"Bearer {token}"})
            for _, token in tokens[1:]
        ]
        res = await asyncio.gather(*tasks)
        for r in res:
            print(r.status_code, r.json().get("availableSeats", r.json().get("msg")))
        final = await client.get(f"/rides/{ride_id}", headers={"Authorization": f"Bearer {tokens[0][1]}"})
        print("final:", final.json()["availableSeats"], final.json()["status"])
    return res


if __name__ == "__main__":
    asyncio.run(run())
