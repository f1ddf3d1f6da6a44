#!/usr/bin/env python
"""Idempotent seed script for permissions, roles and default settings.

Usage:
    python backend/scripts/seed_defaults.py               # seed normally
    python backend/scripts/seed_defaults.py --show-roles  # print role -> permission counts after seeding
    python backend/scripts/seed_defaults.py --dry-run     # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text
from werkzeug.security import generate_password_hash

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from servicequeue import create_app, get_db  # type: ignore
from servicequeue.models.authz import Base, Permission, Role, RolePermission, User, UserRole
from servicequeue.constants.permissions import SERVICE_ACTIONS, ROLE_PRESETS, build_all_permission_codes
from servicequeue.services.settings import SettingsProvider
import servicequeue.models.vehicle  # noqa: F401
import servicequeue.models.ticket  # noqa: F401
import servicequeue.models.maintenance_item  # noqa: F401
import servicequeue.models.setting  # noqa: F401
import servicequeue.models.audit  # noqa: F401


def ensure_permissions(session):
    existing = {p.code for p in session.execute(select(Permission)).scalars().all()}
    created = 0
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            code = f"{svc}.{act}"
            if code not in existing:
                session.add(Permission(code=code, service=svc, action=act, description=code.replace('.', ' - ')))
                created += 1
    session.flush()
    return created


def ensure_roles(session):
    existing_roles = {r.name: r for r in session.execute(select(Role)).scalars().all()}
    created = 0
    for role_name in ROLE_PRESETS:
        if role_name not in existing_roles:
            role = Role(name=role_name, is_system=True)
            session.add(role)
            existing_roles[role_name] = role
            created += 1
    session.flush()

    all_codes = set(build_all_permission_codes())
    perms_map = {p.code: p for p in session.execute(select(Permission)).scalars()}
    for role_name, role in existing_roles.items():
        raw_codes = ROLE_PRESETS.get(role_name, [])
        desired_codes = all_codes if '*' in raw_codes else set(raw_codes)
        current_codes = {rp.permission.code for rp in role.permissions}
        for code in sorted(desired_codes - current_codes):
            if code not in perms_map:
                print(f"[WARN] Missing permission referenced by role {role_name}: {code}")
                continue
            session.add(RolePermission(role=role, permission=perms_map[code]))
    return created


def ensure_initial_admin(session):
    owner_role = session.execute(select(Role).where(Role.name == 'Owner')).scalar_one_or_none()
    if not owner_role:
        print('[WARN] Owner role missing; skipping admin user creation')
        return
    admin_email = os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com')
    existing_admin = session.execute(select(User).where(User.email == admin_email)).scalar_one_or_none()
    if not existing_admin:
        user = User(name='Owner', email=admin_email, password_hash=generate_password_hash(os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!')))
        session.add(user)
        session.flush()
        session.add(UserRole(user_id=user.id, role_id=owner_role.id))
        print(f"[INFO] Created initial admin user {admin_email} with temporary password.")


def print_role_summary(session):
    rows = []
    for role in session.execute(select(Role)).scalars().all():
        perms = role.permission_codes()
        rows.append((role.name, len(perms), perms[:8]))
    if not rows:
        print("[INFO] No roles present.")
        return
    name_w = max(len(r[0]) for r in rows)
    print(f"{'Role'.ljust(name_w)} | Count | Sample (up to 8)")
    print('-' * (name_w + 40))
    for name, cnt, sample in rows:
        print(f"{name.ljust(name_w)} | {str(cnt).rjust(5)} | {', '.join(sample)}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed RBAC permissions, roles and default settings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_defaults.py\n  dry run: seed_defaults.py --dry-run\n  show roles: seed_defaults.py --show-roles\n""")
    )
    p.add_argument('--show-roles', action='store_true', help='Print role permission counts after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--skip-admin', action='store_true', help='Do not create the initial Owner user')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app({'SCHEDULER_ENABLED': False})
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM settings LIMIT 1'))
        except Exception:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            session.rollback()
            Base.metadata.create_all(session.get_bind())

        try:
            created_p = ensure_permissions(session)
            created_r = ensure_roles(session)
            if not args.skip_admin:
                ensure_initial_admin(session)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Permissions would create: {created_p}, Roles would create: {created_r}")
            else:
                session.commit()
                created_s = SettingsProvider(session).seed_defaults()
                print(f"[DONE] Permissions created: {created_p}, Roles created: {created_r}, Settings created: {created_s}")
            if args.show_roles:
                print('\nRole Permission Summary:')
                print_role_summary(session)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
