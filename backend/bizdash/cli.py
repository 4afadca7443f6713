# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/bizdash/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init --owner-email owner@bizdash.local --owner-password "Password123!" [--brand "Acme"]
#   Idempotent bootstrap: built-in roles, first owner user, first (active) brand.
#
# Roles:
# - python -m flask roles list
# - python -m flask roles reset-defaults
#   Rewrite every role's permission matrix with its built-in default.
#
# Users:
# - python -m flask users list
# - python -m flask users create --email staff@bizdash.local --password "Password123!" --role staff
# - python -m flask users approve staff@bizdash.local
#
# Brands and scopes:
# - python -m flask brands list
# - python -m flask brands create --name "Beta Store" [--slug beta-store] [--active]
# - python -m flask scopes grant staff@bizdash.local acme [--brand-admin]
# - python -m flask scopes revoke staff@bizdash.local acme
#
# Products:
# - python -m flask products list [--brand acme]
# - python -m flask products create --name "Paper A4" [--sku PAPER-A4] [--unit ream] [--brand acme] [--untracked]
#
# Outbox (activity log / notifications):
# - python -m flask outbox dispatch [--limit 500]
# - python -m flask outbox requeue-failed
#
# Maintenance:
# - python -m flask maintenance purge-invoices --retention-days 30
# - python -m flask maintenance cleanup-outbox --retention-days 14

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import AppError
from .extensions import db
from .models import BrandProfile, Product, User
from .services import auth_service, brand_scope_service, brand_service, maintenance_service, outbox_service


def _require_user(email: str) -> User:
    user = auth_service.get_user_by_email(email)
    if not user:
        raise click.ClickException(f"User not found: {email}")
    return user


def _require_brand(slug: str) -> BrandProfile:
    brand = brand_service.get_brand_by_slug(slug)
    if not brand:
        raise click.ClickException(f"Brand not found: {slug}")
    return brand


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--owner-email', default='owner@bizdash.local', show_default=True)
@click.option('--owner-password', default='Password123!', show_default=True)
@click.option('--brand', 'brand_name', default='Default Brand', show_default=True)
@with_appcontext
def init_system(owner_email, owner_password, brand_name):
    """
    Create built-in roles, the first owner account and the first brand.

    SECURITY: Change the owner password immediately in production!
    """
    click.echo("START Initializing bizdash...")

    roles = auth_service.create_default_roles()
    click.echo(f"PASS Roles: {', '.join(r.name for r in roles)}")

    brand = db.session.query(BrandProfile).order_by(BrandProfile.id.asc()).first()
    if not brand:
        brand = brand_service.create_brand({"name": brand_name, "is_active": True})
        click.echo(f"PASS Created brand: {brand.name} ({brand.slug})")
    else:
        click.echo(f"PASS Using existing brand: {brand.name} ({brand.slug})")

    owner = auth_service.get_user_by_email(owner_email)
    if owner:
        click.echo(f"WARN  Owner '{owner_email}' already exists, skipping...")
    else:
        try:
            owner = auth_service.create_user(
                email=owner_email, password=owner_password, name="Owner", role_names=["owner"]
            )
            click.echo(f"PASS Created owner: {owner.email}")
        except AppError as exc:
            raise click.ClickException(f"Failed to create owner: {exc.message}")

    click.echo("DONE bizdash initialized.")


@click.group('roles')
def roles_group():
    """Role inspection and repair."""


@roles_group.command('list')
@with_appcontext
def list_roles_cli():
    for role in auth_service.list_roles():
        granted = [
            f"{module}:{','.join(a for a, on in actions.items() if on)}"
            for module, actions in role.matrix().to_dict().items()
            if any(actions.values())
        ]
        click.echo(f"{role.name:<10} {role.description or ''}")
        for line in granted:
            click.echo(f"    {line}")


@roles_group.command('reset-defaults')
@with_appcontext
def reset_defaults_cli():
    roles = auth_service.reset_role_defaults()
    click.echo(f"PASS Reset {len(roles)} roles to default matrices.")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users_cli():
    for user in auth_service.list_users():
        status = "active" if user.is_active else "PENDING"
        click.echo(f"{user.id:>4}  {user.email:<32} {status:<8} {','.join(user.role_names)}")


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--name', default=None)
@click.option('--role', 'role_names', multiple=True, default=("staff",), show_default=True)
@with_appcontext
def create_user_cli(email, password, name, role_names):
    try:
        user = auth_service.create_user(email=email, password=password, name=name, role_names=list(role_names))
    except AppError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"PASS Created user {user.email} with roles: {', '.join(user.role_names)}")


@users_group.command('approve')
@click.argument('email')
@with_appcontext
def approve_user_cli(email):
    user = auth_service.approve_user(_require_user(email).id)
    click.echo(f"PASS Approved {user.email}")


@click.group('brands')
def brands_group():
    """Brand profile management."""


@brands_group.command('list')
@with_appcontext
def list_brands_cli():
    for brand in db.session.query(BrandProfile).order_by(BrandProfile.id.asc()).all():
        marker = "*" if brand.is_active else " "
        click.echo(f"{marker} {brand.id:>4}  {brand.slug:<24} {brand.name}")


@brands_group.command('create')
@click.option('--name', required=True)
@click.option('--slug', default=None)
@click.option('--active', is_flag=True, help='Make this the global active brand')
@with_appcontext
def create_brand_cli(name, slug, active):
    data = {"name": name, "is_active": active}
    if slug:
        data["slug"] = slug
    try:
        brand = brand_service.create_brand(data)
    except AppError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"PASS Created brand {brand.slug} (ID: {brand.id})")


@click.group('scopes')
def scopes_group():
    """User brand scope grants."""


@scopes_group.command('grant')
@click.argument('email')
@click.argument('slug')
@click.option('--brand-admin', is_flag=True)
@with_appcontext
def grant_scope_cli(email, slug, brand_admin):
    user = _require_user(email)
    brand = _require_brand(slug)
    brand_scope_service.upsert_scope(user_id=user.id, brand_profile_id=brand.id, is_brand_admin=brand_admin)
    click.echo(f"PASS {user.email} -> {brand.slug}")


@scopes_group.command('revoke')
@click.argument('email')
@click.argument('slug')
@with_appcontext
def revoke_scope_cli(email, slug):
    user = _require_user(email)
    removed = brand_scope_service.revoke_scope(user_id=user.id, brand_slug=_require_brand(slug).slug)
    click.echo(f"PASS Removed {removed} grant(s)")


@click.group('products')
def products_group():
    """Stock-tracked products."""


@products_group.command('list')
@click.option('--brand', 'slug', default=None, help='Only products of this brand slug')
@with_appcontext
def list_products_cli(slug):
    query = db.session.query(Product)
    if slug:
        query = query.filter(Product.brand_profile_id == _require_brand(slug).id)
    for product in query.order_by(Product.id.asc()).all():
        marker = "T" if product.track_stock else " "
        click.echo(f"{marker} {product.id:>4}  {product.sku or '-':<16} qty={product.qty:<8} {product.name}")


@products_group.command('create')
@click.option('--name', required=True)
@click.option('--sku', default=None)
@click.option('--unit', default='pcs', show_default=True)
@click.option('--brand', 'slug', default=None)
@click.option('--untracked', is_flag=True, help='Do not move stock for this product')
@with_appcontext
def create_product_cli(name, sku, unit, slug, untracked):
    if sku and db.session.query(Product).filter_by(sku=sku).first():
        raise click.ClickException(f"SKU already exists: {sku}")
    product = Product(
        name=name,
        sku=sku,
        unit=unit,
        brand_profile_id=_require_brand(slug).id if slug else None,
        track_stock=not untracked,
    )
    db.session.add(product)
    db.session.commit()
    click.echo(f"PASS Created product {product.name} (ID: {product.id})")


@click.group('outbox')
def outbox_group():
    """Activity / notification outbox."""


@outbox_group.command('dispatch')
@click.option('--limit', type=int, default=500, show_default=True)
@with_appcontext
def dispatch_outbox_cli(limit):
    stats = outbox_service.dispatch_pending(limit=limit)
    click.echo(
        f"Dispatched {stats['dispatched']}, retrying {stats['retrying']}, failed {stats['failed']}."
    )


@outbox_group.command('requeue-failed')
@with_appcontext
def requeue_failed_cli():
    count = outbox_service.requeue_failed()
    click.echo(f"Requeued {count} failed events.")


@click.group('maintenance')
def maintenance_group():
    """Maintenance and cleanup commands."""


@maintenance_group.command('purge-invoices')
@click.option('--retention-days', type=int, default=None, help='Defaults to INVOICE_PURGE_RETENTION_DAYS')
@with_appcontext
def purge_invoices_cli(retention_days):
    """Hard-delete invoices soft-deleted longer ago than the retention window (all brands)."""
    if retention_days is None:
        retention_days = current_app.config["INVOICE_PURGE_RETENTION_DAYS"]
    deleted = maintenance_service.purge_soft_deleted_invoices(retention_days=retention_days)
    click.echo(f"Deleted {deleted} invoices soft-deleted more than {retention_days} days ago.")


@maintenance_group.command('cleanup-outbox')
@click.option('--retention-days', type=int, default=14, show_default=True)
@with_appcontext
def cleanup_outbox_cli(retention_days):
    deleted = maintenance_service.cleanup_dispatched_outbox(retention_days=retention_days)
    click.echo(f"Deleted {deleted} dispatched outbox events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(roles_group)
    app.cli.add_command(users_group)
    app.cli.add_command(brands_group)
    app.cli.add_command(scopes_group)
    app.cli.add_command(products_group)
    app.cli.add_command(outbox_group)
    app.cli.add_command(maintenance_group)
