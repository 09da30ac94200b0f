"""
Script para inicializar o banco de dados da numeração.
Cria todas as tabelas e, opcionalmente, as regras padrão de um tenant.

Uso:
    python scripts/init_db.py
    python scripts/init_db.py --tenant-id 4 --seed-defaults
"""
import sys
import os
import argparse
import logging

# Adicionar o diretório raiz ao path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from numeracao.core.tenant_context import configure_logging, tenant_scope
from numeracao.database import engine, SessionLocal
from numeracao.models import Base, NumberingConfig, PeriodFormat
from numeracao.services.config_store import find_config

logger = logging.getLogger("numeracao.scripts.init_db")

# Regras padrão (PO-0125-WH1-LOCAL-0001, SO-0125-0001, INV-012025-00001)
DEFAULT_CONFIGS = [
    dict(
        document_type="PO",
        document_name="Purchase Order",
        period_format=PeriodFormat.YYMM,
        prefix1_label="Warehouse",
        prefix1_default_value="WH1",
        prefix1_required=True,
        prefix2_label="Category",
        prefix2_default_value="LOCAL",
        prefix2_required=False,
        sequence_length=4,
    ),
    dict(
        document_type="SO",
        document_name="Sales Order",
        period_format=PeriodFormat.YYMM,
        sequence_length=4,
    ),
    dict(
        document_type="INV",
        document_name="Invoice",
        period_format=PeriodFormat.YYYYMM,
        sequence_length=5,
    ),
]


def create_tables():
    """Criar todas as tabelas no banco"""
    logger.info("[*] Criando tabelas...")
    Base.metadata.create_all(bind=engine)
    logger.info("[+] Tabelas criadas com sucesso!")


def seed_default_configs(db: Session, tenant_id: int) -> int:
    """
    Cria as regras padrão que ainda não existem no tenant.

    Returns:
        Quantidade de regras criadas
    """
    criadas = 0
    for data in DEFAULT_CONFIGS:
        if find_config(db, tenant_id, data["document_type"]):
            logger.info("[!] Regra %s já existe", data["document_type"])
            continue

        db.add(NumberingConfig(tenant_id=tenant_id, **data))
        criadas += 1

    db.commit()
    return criadas


def main(argv=None):
    parser = argparse.ArgumentParser(description="Inicializar banco da numeração de documentos")
    parser.add_argument("--tenant-id", type=int, help="Tenant que recebe as regras padrão")
    parser.add_argument("--seed-defaults", action="store_true", help="Criar regras PO, SO e INV")
    args = parser.parse_args(argv)

    if args.seed_defaults and not args.tenant_id:
        parser.error("--seed-defaults exige --tenant-id")

    configure_logging("INFO")
    create_tables()

    if args.seed_defaults:
        db = SessionLocal()
        try:
            with tenant_scope(args.tenant_id):
                criadas = seed_default_configs(db, args.tenant_id)
                logger.info("[+] %s regra(s) padrão criada(s)", criadas)
        finally:
            db.close()


if __name__ == "__main__":
    main()
