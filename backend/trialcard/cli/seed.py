"""CLI utilities for seeding reference data and provisioning accounts."""

# purpose: give administrators the only path for creating departments and users
# status: active
# depends_on: trialcard.database, trialcard.models, trialcard.rbac

from __future__ import annotations

import json

import typer
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import get_password_hash
from ..database import SessionLocal
from ..rbac import DEPARTMENTS, ROLE_ADMIN, ROLE_HOD, ROLE_METHODS, ROLE_OPERATOR, ROLE_USER

app = typer.Typer(help="Trial card administration commands")

KNOWN_ROLES = (ROLE_ADMIN, ROLE_HOD, ROLE_METHODS, ROLE_USER, ROLE_OPERATOR)


def seed_departments(session: Session) -> dict[str, int]:
    """Insert any missing departments from the static department table."""

    created = 0
    for department_id, name in DEPARTMENTS.items():
        if session.get(models.Department, department_id) is None:
            session.add(models.Department(department_id=department_id, department_name=name))
            created += 1
    if created:
        session.commit()
    return {"created": created, "total": len(DEPARTMENTS)}


def create_user(
    session: Session,
    username: str,
    password: str,
    role: str = ROLE_USER,
    department_id: int | None = None,
    full_name: str | None = None,
    email: str | None = None,
    machine_shop_user_type: str = "N/A",
    needs_password_change: bool = True,
) -> models.User:
    """Create an account; raises ValueError (including pydantic's ValidationError) on bad input."""

    data = schemas.UserCreate(
        username=username,
        password=password,
        full_name=full_name,
        email=email,
        role=role,
        department_id=department_id,
        machine_shop_user_type=machine_shop_user_type,
        needs_password_change=needs_password_change,
    )
    if data.role not in KNOWN_ROLES:
        raise ValueError(f"Unknown role {data.role!r}")
    if session.query(models.User).filter(models.User.username == username).first():
        raise ValueError(f"User {username} already exists")
    if department_id is not None and session.get(models.Department, department_id) is None:
        raise ValueError(f"Department {department_id} does not exist")

    user = models.User(
        **data.model_dump(exclude={"password"}),
        password_hash=get_password_hash(data.password),
    )
    session.add(user)
    session.flush()
    audit.log_action(
        session,
        None,
        department_id,
        "User created",
        f"User {data.username} created with role {data.role}",
        commit=False,
    )
    session.commit()
    session.refresh(user)
    return user


@app.command("seed-departments")
def seed_departments_command() -> None:
    session = SessionLocal()
    try:
        typer.echo(json.dumps(seed_departments(session)))
    finally:
        session.close()


@app.command("create-user")
def create_user_command(
    username: str = typer.Argument(..., help="Login name"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    role: str = typer.Option(ROLE_USER, help="One of Admin, HOD, Methods, User, Operator"),
    department_id: int | None = typer.Option(None, "--department", help="Department id"),
    full_name: str | None = typer.Option(None),
    email: str | None = typer.Option(None),
    machine_shop_user_type: str = typer.Option("N/A", help="N/A, NPD or REGULAR"),
) -> None:
    """Create a user account; the user must change the password on first login."""

    session = SessionLocal()
    try:
        try:
            user = create_user(
                session,
                username,
                password,
                role=role,
                department_id=department_id,
                full_name=full_name,
                email=email,
                machine_shop_user_type=machine_shop_user_type,
            )
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        typer.echo(json.dumps({"user_id": user.user_id, "username": user.username, "role": user.role}))
    finally:
        session.close()


if __name__ == "__main__":
    app()
