"""Admin platform CLI tool (adminctl)."""

from typing import Optional

import typer

app = typer.Typer(name="adminctl", help="Admin platform CLI")
db_app = typer.Typer(help="Database management commands")
users_app = typer.Typer(help="User management commands")
audit_app = typer.Typer(help="Audit trail maintenance")
app.add_typer(db_app, name="db")
app.add_typer(users_app, name="users")
app.add_typer(audit_app, name="audit")


@db_app.command("init")
def db_init():
    """Create all tables that do not exist yet."""
    from adminpanel.db.session import init_db

    init_db()
    typer.echo("✅ Tables created")


@db_app.command("seed")
def db_seed():
    """Seed the permission catalog and the initial admin."""
    from adminpanel.db.session import SessionLocal
    from adminpanel.db.seeds.seed_permissions import seed_permissions
    from adminpanel.db.seeds.seed_admin import seed_admin

    db = SessionLocal()
    try:
        created = seed_permissions(db)
        admin = seed_admin(db)
        admin_email = admin.email if admin else None
    finally:
        db.close()
    typer.echo(f"✅ Permissions seeded ({created} new)")
    if admin_email:
        typer.echo(f"✅ Admin ready: {admin_email}")
    else:
        typer.echo("ℹ️  An admin already exists, skipping")


@users_app.command("promote")
def promote(email: str = typer.Argument(..., help="Email of the user to promote")):
    """Give the admin role to an existing user."""
    from adminpanel.core.exceptions import ResourceNotFoundError
    from adminpanel.db.session import SessionLocal
    from adminpanel.services.audit_service import AuditService
    from adminpanel.services.permission_resolver import PermissionResolver
    from adminpanel.services.user_service import UserService

    db = SessionLocal()
    try:
        service = UserService(db, PermissionResolver(db), AuditService(db))
        service.promote_to_admin(email)
    except ResourceNotFoundError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()
    typer.echo(f"✅ {email} is now an admin")


@audit_app.command("cleanup")
def audit_cleanup(
    days: Optional[int] = typer.Option(None, "--days", min=1, help="Retention in days"),
):
    """Delete audit entries older than the retention horizon."""
    from adminpanel.core.config import settings
    from adminpanel.db.session import SessionLocal
    from adminpanel.services.audit_service import AuditService

    retention = days or settings.AUDIT_RETENTION_DAYS
    db = SessionLocal()
    try:
        deleted = AuditService(db).cleanup(retention)
    finally:
        db.close()
    typer.echo(f"✅ Deleted {deleted} audit entries older than {retention} days")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(True, help="Auto-reload"),
):
    """Start the FastAPI development server."""
    import uvicorn
    uvicorn.run("adminpanel.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
