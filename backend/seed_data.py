"""Seed database with demo data for local link testing."""
from vampyr.database import Base, SessionLocal, engine
from vampyr.models import Player, User
from vampyr.auth import create_access_token
import uuid


DEMO_USERS = [
    {
        'id': uuid.UUID('00000000-0000-0000-0000-000000000101'),
        'username': 'hunter',
        'name': 'Demo Hunter',
        'email': 'hunter@example.com',
    },
    {
        'id': uuid.UUID('00000000-0000-0000-0000-000000000102'),
        'username': 'slayer',
        'name': 'Demo Slayer',
        'email': 'slayer@example.com',
    },
]

DEMO_PLAYERS = ['rex', 'nyx']


def seed():
    """Seed database with demo data."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        for data in DEMO_USERS:
            if not db.query(User).filter(User.id == data['id']).first():
                db.add(User(**data))

        for nickname in DEMO_PLAYERS:
            if not db.query(Player).filter(Player.nickname == nickname).first():
                db.add(Player(nickname=nickname))

        db.commit()

        print("✅ Demo data ready")
        print("\nBearer tokens (valid for JWT_ACCESS_TOKEN_EXPIRE_MINUTES):")
        for data in DEMO_USERS:
            token = create_access_token({"sub": str(data['id']), "ver": 0})
            print(f"  {data['username']}: {token}")
        print("\nPlayers:", ", ".join(DEMO_PLAYERS))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
