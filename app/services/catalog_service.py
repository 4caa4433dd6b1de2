"""
Service catalog: niches, categories and service templates
"""
import logging
from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models.catalog import Niche, Category, ServiceTemplate
from app.schemas.catalog import (
    NicheCreate,
    NicheUpdate,
    CategoryCreate,
    CategoryUpdate,
    ServiceTemplateCreate,
    ServiceTemplateUpdate,
)
from app.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for catalog operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Niches

    async def get_niche(self, niche_id: int) -> Niche:
        niche = await self.db.get(Niche, niche_id)
        if not niche:
            raise NotFoundError("Niche not found")
        return niche

    async def list_niches(self) -> List[Dict[str, Any]]:
        """All niches, each with its categories"""
        niches = (await self.db.execute(select(Niche).order_by(Niche.name))).scalars().all()
        categories = (await self.db.execute(select(Category).order_by(Category.name))).scalars().all()

        by_niche: Dict[int, List[Dict[str, Any]]] = {}
        for category in categories:
            by_niche.setdefault(category.niche_id, []).append(category.to_dict())

        return [{**niche.to_dict(), "categories": by_niche.get(niche.id, [])} for niche in niches]

    async def create_niche(self, data: NicheCreate) -> Niche:
        niche = Niche(**data.model_dump())
        self.db.add(niche)
        await self.db.commit()
        await self.db.refresh(niche)
        logger.info(f"📚 [CATALOG] Niche created: {niche.name}")
        return niche

    async def update_niche(self, niche_id: int, data: NicheUpdate) -> Niche:
        niche = await self.get_niche(niche_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(niche, field, value)
        await self.db.commit()
        await self.db.refresh(niche)
        return niche

    # Categories

    async def get_category(self, category_id: int) -> Category:
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def list_categories(self, niche_id: Optional[int] = None) -> List[Category]:
        query = select(Category)
        if niche_id is not None:
            query = query.where(Category.niche_id == niche_id)
        result = await self.db.execute(query.order_by(Category.name))
        return list(result.scalars().all())

    async def _check_parent(self, parent_id: Optional[int], niche_id: int, category_id: Optional[int] = None):
        if parent_id is None:
            return
        if category_id is not None and parent_id == category_id:
            raise ValidationError("A category cannot be its own parent")
        parent = await self.db.get(Category, parent_id)
        if not parent:
            raise NotFoundError("Parent category not found")
        if parent.niche_id != niche_id:
            raise ValidationError("Parent category belongs to another niche")

    async def create_category(self, data: CategoryCreate) -> Category:
        await self.get_niche(data.niche_id)
        await self._check_parent(data.parent_id, data.niche_id)

        category = Category(**data.model_dump())
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        logger.info(f"📚 [CATALOG] Category created: {category.name} (niche {category.niche_id})")
        return category

    async def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = await self.get_category(category_id)
        updates = data.model_dump(exclude_unset=True)

        if "parent_id" in updates:
            await self._check_parent(updates["parent_id"], category.niche_id, category.id)

        for field, value in updates.items():
            setattr(category, field, value)
        await self.db.commit()
        await self.db.refresh(category)
        return category

    # Service templates

    async def get_template(self, template_id: int) -> ServiceTemplate:
        template = await self.db.get(ServiceTemplate, template_id)
        if not template:
            raise NotFoundError("Service template not found")
        return template

    async def list_templates(
        self,
        category_id: Optional[int] = None,
        niche_id: Optional[int] = None,
        include_inactive: bool = False,
    ) -> List[ServiceTemplate]:
        query = select(ServiceTemplate)
        if category_id is not None:
            query = query.where(ServiceTemplate.category_id == category_id)
        if niche_id is not None:
            query = query.where(ServiceTemplate.niche_id == niche_id)
        if not include_inactive:
            query = query.where(ServiceTemplate.is_active == True)

        result = await self.db.execute(query.order_by(ServiceTemplate.name))
        return list(result.scalars().all())

    async def create_template(self, data: ServiceTemplateCreate) -> ServiceTemplate:
        category = await self.get_category(data.category_id)

        template = ServiceTemplate(**data.model_dump(), niche_id=category.niche_id)
        self.db.add(template)
        await self.db.commit()
        await self.db.refresh(template)
        logger.info(f"📚 [CATALOG] Service template created: {template.name} ({template.duration} min)")
        return template

    async def update_template(self, template_id: int, data: ServiceTemplateUpdate) -> ServiceTemplate:
        template = await self.get_template(template_id)
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None or k == "description"}

        if "category_id" in updates:
            category = await self.get_category(updates["category_id"])
            template.niche_id = category.niche_id

        for field, value in updates.items():
            setattr(template, field, value)
        await self.db.commit()
        await self.db.refresh(template)
        return template

    async def deactivate_template(self, template_id: int) -> ServiceTemplate:
        """Templates are never removed because provider services reference them"""
        template = await self.get_template(template_id)
        template.is_active = False
        await self.db.commit()
        await self.db.refresh(template)
        logger.info(f"📚 [CATALOG] Service template deactivated: {template.name}")
        return template
