import logging
from app.core.config import settings
from app.database import SessionLocal
from app.models.employee import Employee, EmployeeRole
from app.models.manager_settings import ManagerSettingsRecord
from app.models.organization import Organization
from app.schemas.settings import ManagerSettings

logger = logging.getLogger(__name__)

def init_system_data():
    """
    Checks if the system needs initialization.
    If no organization exists, creates a default one, its account owner and
    default reporting settings. Off unless BOOTSTRAP_DEFAULT_ORG=true.
    """
    if not settings.bootstrap_default_org:
        return
    db = SessionLocal()
    try:
        org_count = db.query(Organization).count()
        if org_count == 0:
            logger.info("Running startup initialization...")

            # 1. Default Organization
            org = Organization(name=settings.bootstrap_org_name, selected_metrics=[])
            db.add(org)
            db.flush()  # Get org ID

            # 2. Account owner (always resolves to full capabilities)
            owner = Employee(
                organization_id=org.id,
                name="Account Owner",
                email=settings.bootstrap_owner_email,
                role=EmployeeRole.MANAGER,
                is_account_owner=True,
                permissions={},
            )
            db.add(owner)

            # 3. Default reporting cadence
            db.add(ManagerSettingsRecord(
                organization_id=org.id,
                data=ManagerSettings(selected_days=["Friday"]).model_dump(mode="json"),
            ))

            db.commit()
            logger.info(f"✓ System bootstrapped with {org.name} (owner: {owner.email})")
        else:
            logger.info(f"System initialization check: {org_count} organization(s) found.")

    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        db.close()
