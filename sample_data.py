from db import init_db, get_session
from models import User, Ride
from auth import issue_token
from datetime import datetime, timedelta
import random

CAMPUS = (78.47, 17.40)  # [lng, lat], Hyderabad
ADDRESSES = ["Main Gate", "Library", "Hostel Block C", "Metro Station", "Bus Depot", "Tech Park"]


def seed(n_users=10, n_rides=20):
    """Create users (each with a bearer token) and rides around the campus.

    Returns a list of (user_id, token) pairs.
    """
    init_db()
    session = get_session()
    stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S%f")
    users = [
        User(
            name=f"student{i}",
            email=f"student{i}.{stamp}@college.edu",
            phone=f"98765{i:05d}",
            college="Campus College",
            department=random.choice(["CSE", "ECE", "MECH", "CIVIL"]),
        )
        for i in range(1, n_users + 1)
    ]
    session.add_all(users)
    session.commit()
    tokens = [(u.id, issue_token(session, u.id)) for u in users]

    now = datetime.utcnow()
    for i in range(n_rides):
        creator = users[i % len(users)]
        # pickup within ~5km of campus, drop-off ~5-10km away
        flng = CAMPUS[0] + (random.random() - 0.5) * 0.09
        flat = CAMPUS[1] + (random.random() - 0.5) * 0.09
        tlng = CAMPUS[0] + 0.03 + (random.random() - 0.5) * 0.09
        tlat = CAMPUS[1] + 0.05 + (random.random() - 0.5) * 0.09
        session.add(Ride(
            creator_id=creator.id,
            from_address=random.choice(ADDRESSES),
            from_lng=flng,
            from_lat=flat,
            to_address=random.choice(ADDRESSES),
            to_lng=tlng,
            to_lat=tlat,
            departure_time=now + timedelta(hours=random.randint(1, 72)),
            available_seats=random.randint(1, 4),
        ))
    session.commit()
    session.close()
    print(f"Seeded {n_users} users and {n_rides} rides")
    return tokens


if __name__ == "__main__":
    for user_id, token in seed():
        print(user_id, token)
