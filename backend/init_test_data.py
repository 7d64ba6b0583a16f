import logging
from datetime import timedelta
from database import new_session
from models.auth import UserOrm
from models.user_profile import UserProfileOrm
from models.event import EventOrm
from sqlalchemy import select
from utils.dates import utc_now




logger = logging.getLogger(__name__)


async def init_users():
    """Demo admin, organization and volunteer; skipped when users already exist"""
    async with new_session() as session:
        existing_users = await session.execute(select(UserOrm))
        if existing_users.scalars().first():
            return None
        
        users = [
            UserOrm(auth_id="admin-demo", name="Administração ImpactoLocal", email="admin@impactolocal.pt", role="admin"),
            UserOrm(auth_id="org-demo", name="Associação Mar Limpo", email="geral@marlimpo.pt", role="organization"),
            UserOrm(auth_id="vol-demo", name="Ana Costa", email="ana.costa@example.com", role="volunteer"),
        ]
        session.add_all(users)
        await session.flush()
        
        session.add_all([UserProfileOrm(user_id=user.id) for user in users])
        organization = users[1]
        profile = (await session.execute(
            select(UserProfileOrm).where(UserProfileOrm.user_id == organization.id)
        )).scalars().first()
        profile.mission = "Proteger a orla costeira através do voluntariado local."
        profile.location = "Matosinhos"
        
        await session.commit()
        return organization.id


async def init_events(organization_id: int):
    async with new_session() as session:
        now = utc_now()
        events = [
            EventOrm(
                organization_id=organization_id,
                title="Limpeza da praia de Matosinhos",
                description="Recolha de resíduos no areal e separação para reciclagem.",
                category="ambiente",
                address="Praia de Matosinhos, Matosinhos",
                date=now + timedelta(days=1),
                duration="3h",
                volunteers_needed=20,
                status="open"
            ),
            EventOrm(
                organization_id=organization_id,
                title="Oficina de reciclagem para crianças",
                description="Atividades lúdicas sobre reciclagem numa escola primária.",
                category="educacao",
                address="Escola Básica do Padrão da Légua",
                date=now + timedelta(days=7),
                duration="1:30",
                volunteers_needed=5,
                status="open"
            ),
            EventOrm(
                organization_id=organization_id,
                title="Plantação de dunas",
                description="Plantação de vegetação autóctone para fixação das dunas.",
                category="ambiente",
                address="Dunas de Leça da Palmeira",
                date=now - timedelta(days=3),
                duration="4 horas",
                volunteers_needed=10,
                status="closed"
            ),
        ]
        session.add_all(events)
        await session.commit()


async def init_all_test_data():
    organization_id = await init_users()
    if organization_id is None:
        logger.info("Demo data already present, skipping seed")
        return
    await init_events(organization_id)
    logger.info("Demo data created")
