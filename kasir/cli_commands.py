"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask create-user: Create a store owner account
- flask seed-sample-data: Add sample grocery products for an account
"""
import click

from kasir.database import create_tables, get_session
from kasir.exceptions import PosError
from kasir.services import auth_service, product_service

SAMPLE_PRODUCTS = [
    {'name': 'Indomie Goreng', 'barcode': '8992388101012', 'price': 3500, 'cost_price': 2800, 'stock': 100},
    {'name': 'Aqua 600ml', 'barcode': '8993675010016', 'price': 4000, 'cost_price': 3200, 'stock': 75},
    {'name': 'Teh Botol Sosro 450ml', 'barcode': '8992761111113', 'price': 5000, 'cost_price': 4000, 'stock': 48},
    {'name': 'Gula Pasir 1kg', 'barcode': '8998866200301', 'price': 17500, 'cost_price': 15500, 'stock': 20},
    {'name': 'Minyak Goreng 1L', 'barcode': '8997017560014', 'price': 19000, 'cost_price': 17000, 'stock': 4},
]


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create database tables."""
        create_tables(app)
        click.echo(click.style('Tabel database berhasil dibuat.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='Login email')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
    @click.option('--full-name', prompt='Nama lengkap', default='', help='Owner name')
    @click.option('--business-name', prompt='Nama usaha', default='', help='Store name')
    def create_user(email, password, full_name, business_name):
        """Create a store owner account."""
        try:
            user = auth_service.register_user(
                get_session(), email, password, full_name=full_name, business_name=business_name
            )
        except PosError as e:
            click.echo(click.style(f'Gagal membuat akun: {e.message}', fg='red'))
            raise SystemExit(1)
        click.echo(click.style('Akun berhasil dibuat!', fg='green', bold=True))
        click.echo(f'   Email: {user.email}')
        click.echo(f'   ID: {user.id}')

    @app.cli.command('seed-sample-data')
    @click.option('--email', required=True, help='Account that receives the products')
    def seed_sample_data(email):
        """Add sample products with opening stock entries."""
        db_session = get_session()
        user = auth_service.find_user_by_email(db_session, email)
        if not user:
            click.echo(click.style(f'Akun {email} tidak ditemukan.', fg='red'))
            raise SystemExit(1)

        created = 0
        for data in SAMPLE_PRODUCTS:
            if product_service.find_by_barcode(db_session, user.id, data['barcode']):
                click.echo(f"   Lewati {data['name']} (sudah ada)")
                continue
            product_service.create_product(db_session, user.id, dict(data))
            created += 1
        click.echo(click.style(f'{created} produk contoh ditambahkan.', fg='green'))
