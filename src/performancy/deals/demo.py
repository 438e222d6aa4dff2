"""Demo pipeline used when no CRM connection is configured.

Seeded into a fresh PipelineStore on startup; a successful CRM fetch
replaces it wholesale.
"""

from __future__ import annotations

from datetime import date, datetime

from src.performancy.deals.schemas import Deal, DealContact, DealStage

_OWNER = "Thais Rui Cano"

# (id, name, company, value, stage, probability, close date, created, updated, contact, email)
_DEMO_ROWS: list[tuple] = [
    ("1", "Enterprise Software License", "TechCorp Brasil", 150000, DealStage.LEAD, 10,
     "2024-03-15", "2024-01-10T10:00:00Z", "2024-01-12T14:30:00Z",
     "Thais Cano", "thais.cano@skyone.solutions"),
    ("2", "Cloud Migration Project", "Banco Nacional", 115000, DealStage.LEAD, 10,
     "2024-04-01", "2024-01-08T09:00:00Z", "2024-01-11T16:00:00Z",
     "Ana Costa", "ana.costa@banconacional.com.br"),
    ("3", "Data Analytics Platform", "Varejo Express", 280000, DealStage.DISCOVERY, 20,
     "2024-02-28", "2024-01-05T11:00:00Z", "2024-01-14T10:00:00Z",
     "Roberto Mendes", "roberto@varejoexpress.com.br"),
    ("4", "Security Infrastructure", "Seguros Vida", 190000, DealStage.DISCOVERY, 25,
     "2024-03-20", "2024-01-03T08:30:00Z", "2024-01-13T12:00:00Z",
     "Márcia Lima", "marcia@segurosvida.com.br"),
    ("5", "ERP Implementation", "Indústria Metal", 250000, DealStage.QUALIFIED, 40,
     "2024-02-15", "2023-12-20T10:00:00Z", "2024-01-10T15:00:00Z",
     "Paulo Santos", "paulo@industriametal.com.br"),
    ("6", "Mobile App Development", "StartupBR", 185000, DealStage.QUALIFIED, 45,
     "2024-03-01", "2023-12-15T14:00:00Z", "2024-01-09T11:00:00Z",
     "Fernanda Rocha", "fernanda@startupbr.com"),
    ("7", "AI Integration Suite", "HealthTech Solutions", 320000, DealStage.PROPOSAL, 60,
     "2024-02-10", "2023-12-01T09:00:00Z", "2024-01-08T17:00:00Z",
     "Dr. Marina Alves", "marina@healthtech.com.br"),
    ("8", "DevOps Pipeline Setup", "FinanceApp", 255000, DealStage.PROPOSAL, 65,
     "2024-02-20", "2023-11-25T10:30:00Z", "2024-01-07T14:00:00Z",
     "Lucas Ferreira", "lucas@financeapp.com.br"),
    ("9", "Hybrid Cloud Solution", "Energia Verde", 380000, DealStage.NEGOTIATION, 80,
     "2024-01-30", "2023-11-10T11:00:00Z", "2024-01-06T16:00:00Z",
     "André Oliveira", "andre@energiaverde.com.br"),
    ("10", "Customer 360 Platform", "Telecom Brasil", 220000, DealStage.CLOSED_WON, 100,
     "2024-01-05", "2023-10-15T09:00:00Z", "2024-01-05T10:00:00Z",
     "Juliana Prado", "juliana@telecombrasil.com.br"),
    ("11", "IoT Fleet Management", "Logística Express", 155000, DealStage.CLOSED_WON, 100,
     "2024-01-02", "2023-10-01T08:00:00Z", "2024-01-02T11:30:00Z",
     "Ricardo Nunes", "ricardo@logisticaexpress.com.br"),
    ("12", "Legacy System Migration", "Governo Municipal", 95000, DealStage.CLOSED_LOST, 0,
     "2023-12-20", "2023-09-15T10:00:00Z", "2023-12-20T15:00:00Z",
     "Dr. Antonio Gomes", "antonio@prefeitura.gov.br"),
    ("13", "Chatbot Implementation", "E-commerce Plus", 75000, DealStage.CLOSED_LOST, 0,
     "2023-12-15", "2023-09-01T14:00:00Z", "2023-12-15T09:00:00Z",
     "Camila Torres", "camila@ecommerceplus.com.br"),
]


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def demo_deals() -> list[Deal]:
    """Return a fresh copy of the demo pipeline (13 deals across all stages)."""
    return [
        Deal(
            id=deal_id,
            name=name,
            company=company,
            value=value,
            stage=stage,
            probability=probability,
            expected_close_date=date.fromisoformat(close_date),
            owner=_OWNER,
            created_at=_parse_ts(created),
            updated_at=_parse_ts(updated),
            contact=DealContact(name=contact_name, email=contact_email),
        )
        for (
            deal_id, name, company, value, stage, probability,
            close_date, created, updated, contact_name, contact_email,
        ) in _DEMO_ROWS
    ]
