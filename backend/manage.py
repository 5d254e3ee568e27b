from datetime import date
from studently import create_app
from studently.extensions import db
from flask.cli import with_appcontext
from flask_migrate import upgrade, migrate, init
import click

app = create_app()

@app.cli.command("db-init")
@with_appcontext
def db_init():
    """Initializes migrations directory"""
    init()

@app.cli.command("db-migrate")
@with_appcontext
def db_migrate():
    """Creates a new migration"""
    migrate()

@app.cli.command("db-upgrade")
@with_appcontext
def db_upgrade():
    """Applies migrations"""
    upgrade()

@app.cli.command("seed-demo")
@click.option("--date", "attendance_date", default=None, help="Attendance date, YYYY-MM-DD (default today)")
@with_appcontext
def seed_demo(attendance_date):
    """Creates the demo school, users, codes and one day of records"""
    from studently.seed import seed_demo_data
    from utils.validators import parse_date

    day = parse_date(attendance_date) if attendance_date else date.today()
    school = seed_demo_data(day)
    click.echo(f"Seeded {school.name} ({school.id}) for {day.isoformat()}")

@app.cli.command("attendance-recalculate")
@click.argument("school_id")
@click.argument("start_date")
@click.argument("end_date")
@with_appcontext
def attendance_recalculate(school_id, start_date, end_date):
    """Rebuilds daily attendance rows for a school and date range"""
    from studently.services import AttendanceUtilityService

    result = AttendanceUtilityService.recalculate(school_id, start_date, end_date)
    click.echo(f"Recalculated {result['recalculated']} student-days")
    db.session.remove()
