#!/usr/bin/env python3
"""
Gestión de migraciones (Alembic) para la base de datos de facturas.

La URL de conexión sale de app.core.config, igual que la API y los workers.
"""
import sys
from pathlib import Path

from alembic.config import Config
from alembic import command

from app.core.config import settings

ROOT_DIR = Path(__file__).parent

USAGE = """Uso:
  python migrate.py create 'message'  # Crear migración (autogenerate)
  python migrate.py upgrade [rev]     # Ejecutar migraciones (por defecto head)
  python migrate.py downgrade [rev]   # Rollback (por defecto -1)
  python migrate.py stamp [rev]       # Marcar una BD existente sin migrar
  python migrate.py history           # Ver historial
  python migrate.py current           # Ver actual"""


def get_alembic_config() -> Config:
    """Configuración de Alembic con la URL de settings."""
    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(ROOT_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def create_migration(message: str):
    command.revision(get_alembic_config(), autogenerate=True, message=message)
    print(f"Migración creada: {message}")


def run_migrations(revision: str = "head"):
    command.upgrade(get_alembic_config(), revision)
    print(f"Migraciones ejecutadas hasta {revision}")


def rollback_migration(revision: str = "-1"):
    command.downgrade(get_alembic_config(), revision)
    print(f"Rollback ejecutado hasta {revision}")


def stamp(revision: str = "head"):
    """Útil cuando las tablas ya se crearon con create_all en desarrollo."""
    command.stamp(get_alembic_config(), revision)
    print(f"Base de datos marcada en {revision}")


def show_history():
    command.history(get_alembic_config())


def show_current():
    command.current(get_alembic_config())


def main(argv) -> int:
    if len(argv) < 2:
        print(USAGE)
        return 1

    action = argv[1]
    arg = argv[2] if len(argv) > 2 else None

    if action == "create":
        if not arg:
            print("Error: Se requiere un mensaje para la migración")
            return 1
        create_migration(arg)
    elif action == "upgrade":
        run_migrations(arg or "head")
    elif action == "downgrade":
        rollback_migration(arg or "-1")
    elif action == "stamp":
        stamp(arg or "head")
    elif action == "history":
        show_history()
    elif action == "current":
        show_current()
    else:
        print(f"Acción desconocida: {action}")
        print(USAGE)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
