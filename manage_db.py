#!/usr/bin/env python3
"""
Database management script for the timesheet engine.
Handles table creation, reset, demo data seeding and development tokens.
"""

import sys
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from timesheet_engine.infrastructure.auth.jwt_handler import JWTHandler
from timesheet_engine.infrastructure.db.database import SessionLocal, create_tables, drop_tables
from timesheet_engine.infrastructure.db.models import ProjectModel, TaskModel, UserProfileModel


DEMO_COMPANY = "acme"

DEMO_USERS = [
    {"id": "u-admin", "first_name": "Ada", "last_name": "Reviewer", "role": "admin"},
    {"id": "u-hr", "first_name": "Hugo", "last_name": "People", "role": "hr"},
    {"id": "u-lead", "first_name": "Lena", "last_name": "Lead", "role": "leads"},
    {"id": "u-emp", "first_name": "Emil", "last_name": "Worker", "role": "employee"},
]

DEMO_PROJECTS = [
    {"name": "Customer Portal", "tasks": ["Login page", "Billing screen"]},
    {"name": "Internal Tooling", "tasks": ["CI pipeline"]},
]


def init_database():
    """Create all tables."""
    print("Creating tables...")
    create_tables()
    print("Done.")


def reset_database():
    """Reset database - WARNING: This will drop all data!"""
    response = input("This will drop ALL data. Type 'yes' to continue: ")
    if response.lower() == 'yes':
        print("Resetting database...")
        drop_tables()
        create_tables()
        print("Done.")
    else:
        print("Database reset cancelled.")


def seed_database():
    """Insert demo users, projects and tasks."""
    create_tables()
    session = SessionLocal()
    try:
        if session.query(UserProfileModel).filter_by(company_id=DEMO_COMPANY).first():
            print("Demo data already present.")
            return

        for user in DEMO_USERS:
            session.add(UserProfileModel(
                company_id=DEMO_COMPANY,
                email=f"{user['id']}@example.com",
                **user
            ))

        for project in DEMO_PROJECTS:
            model = ProjectModel(company_id=DEMO_COMPANY, name=project["name"])
            session.add(model)
            session.flush()
            for title in project["tasks"]:
                session.add(TaskModel(project_id=model.id, title=title, status="open"))

        session.commit()
        print(f"Seeded {len(DEMO_USERS)} users and {len(DEMO_PROJECTS)} projects for '{DEMO_COMPANY}'.")
    finally:
        session.close()


def print_token(user_id: str):
    """Print a development bearer token for a demo user."""
    user = next((u for u in DEMO_USERS if u["id"] == user_id), None)
    if user is None:
        print(f"Unknown demo user: {user_id}")
        return

    print(JWTHandler().generate_token(user["id"], user["role"], DEMO_COMPANY))


def main():
    """Main CLI function."""
    if len(sys.argv) < 2:
        print("Usage: python manage_db.py [command]")
        print("Commands:")
        print("  init           - Create tables")
        print("  reset          - Reset database (WARNING: drops all data)")
        print("  seed           - Insert demo users, projects and tasks")
        print("  token [user]   - Print a development token for a demo user")
        return

    command_name = sys.argv[1]

    if command_name == "init":
        init_database()
    elif command_name == "reset":
        reset_database()
    elif command_name == "seed":
        seed_database()
    elif command_name == "token":
        print_token(sys.argv[2] if len(sys.argv) > 2 else "u-emp")
    else:
        print(f"Unknown command: {command_name}")


if __name__ == "__main__":
    main()
