import os
import click
from dotenv import load_dotenv

# Load environment variables before the config class reads them
load_dotenv()

from app import create_app, db  # noqa: E402
from app.errors import MarketplaceError  # noqa: E402
from app.models.user import User  # noqa: E402
from app.schema_replay import replay_schema  # noqa: E402
from app.security import service_session  # noqa: E402
from app.services.admin_service import AdminService  # noqa: E402

# Create app instance
app = create_app()


@app.cli.command()
def init_db():
    """Replay schema, access rules, storage buckets and seed data"""
    report = replay_schema(db.engine)
    for stage, result in report.items():
        count = len(result) if result is not None else 0
        print(f'{stage}: {count}')
    print('Database initialized successfully!')


@app.cli.command()
def drop_db():
    """Drop all tables"""
    if input('Are you sure you want to drop all tables? (yes/no): ') == 'yes':
        db.drop_all()
        print('Database dropped successfully!')
    else:
        print('Operation cancelled')


@app.cli.command()
@click.argument('email')
@click.option('--notes', default=None, help='Reason recorded with the approval')
def promote_admin(email, notes):
    """Grant the admin role to an existing user"""
    user = User.query.filter_by(email=email.strip().lower()).first()
    if user is None:
        print('User not found')
        return

    try:
        AdminService.promote_to_admin(service_session(), user.id, notes=notes)
    except MarketplaceError as e:
        print(f'Promotion failed: {e.message}')
        return

    print(f'{email} is now an admin')


if __name__ == '__main__':
    app.run(
        host=os.getenv('HOST', '0.0.0.0'),
        port=int(os.getenv('PORT', 5000)),
        debug=os.getenv('DEBUG', 'True') == 'True'
    )
