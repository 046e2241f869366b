"""
Assignment rule resolver.

Fills in the department, priority and assignee a new ticket did not
specify, from the most specific matching assignment rule and then from the
subcategory/category default departments. Values the ticket already carries
are never replaced.
"""

import logging
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import AssignmentRule, Category, Subcategory

logger = logging.getLogger(__name__)

SUBCATEGORY_MATCH_SCORE = 4
CATEGORY_MATCH_SCORE = 2
DECISION_SCORE = 1


class AssignmentResult(BaseModel):
    """Outcome of resolving a ticket's routing fields."""

    department: Optional[str]
    priority: Optional[str]
    assignee_id: Optional[UUID]
    rule: Optional[AssignmentRule] = None
    score: int = 0

    class Config:
        arbitrary_types_allowed = True

    @property
    def auto_assigned(self) -> bool:
        return self.rule is not None and self.rule.assign_to_user_id is not None


def rule_matches(rule: AssignmentRule, category_id: UUID, subcategory_id: Optional[UUID]) -> bool:
    """A null category or subcategory on the rule matches anything."""
    if rule.is_active is False:
        return False
    if rule.category_id is not None and rule.category_id != category_id:
        return False
    if rule.subcategory_id is not None and rule.subcategory_id != subcategory_id:
        return False
    return True


def score_rule(rule: AssignmentRule, category_id: UUID, subcategory_id: Optional[UUID]) -> int:
    """Specificity score; rules that decide more score higher."""
    score = 0
    if subcategory_id is not None and rule.subcategory_id == subcategory_id:
        score += SUBCATEGORY_MATCH_SCORE
    if rule.category_id == category_id:
        score += CATEGORY_MATCH_SCORE
    if rule.assign_to_user_id is not None:
        score += DECISION_SCORE
    if rule.department:
        score += DECISION_SCORE
    if rule.priority:
        score += DECISION_SCORE
    return score


def select_rule(
    rules: Iterable[AssignmentRule],
    category_id: UUID,
    subcategory_id: Optional[UUID]
) -> Tuple[Optional[AssignmentRule], int]:
    """
    Pick the highest scoring matching rule.

    Ties keep the earliest rule in iteration order; callers pass rules
    ordered by creation time.
    """
    best: Optional[AssignmentRule] = None
    best_score = -1
    for rule in rules:
        if not rule_matches(rule, category_id, subcategory_id):
            continue
        score = score_rule(rule, category_id, subcategory_id)
        if score > best_score:
            best, best_score = rule, score

    return best, max(best_score, 0)


def resolve_assignment(
    rule: Optional[AssignmentRule],
    department: Optional[str] = None,
    priority: Optional[str] = None,
    assignee_id: Optional[UUID] = None,
    subcategory_department: Optional[str] = None,
    category_department: Optional[str] = None,
    score: int = 0,
) -> AssignmentResult:
    """Backfill missing values. Explicit ticket values always win."""
    if not department:
        department = (
            (rule.department if rule else None)
            or subcategory_department
            or category_department
            or None
        )
    if not priority and rule is not None and rule.priority:
        priority = rule.priority
    if assignee_id is None and rule is not None and rule.assign_to_user_id is not None:
        assignee_id = rule.assign_to_user_id

    return AssignmentResult(
        department=department,
        priority=priority,
        assignee_id=assignee_id,
        rule=rule,
        score=score,
    )


class AssignmentResolver:
    """Database-backed front for the resolver functions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_candidate_rules(
        self,
        category_id: UUID,
        subcategory_id: Optional[UUID]
    ) -> List[AssignmentRule]:
        stmt = (
            select(AssignmentRule)
            .where(AssignmentRule.is_active.is_(True))
            .where(or_(
                AssignmentRule.category_id == category_id,
                AssignmentRule.category_id.is_(None)
            ))
        )
        if subcategory_id is not None:
            stmt = stmt.where(or_(
                AssignmentRule.subcategory_id == subcategory_id,
                AssignmentRule.subcategory_id.is_(None)
            ))
        else:
            stmt = stmt.where(AssignmentRule.subcategory_id.is_(None))

        stmt = stmt.order_by(AssignmentRule.created_at, AssignmentRule.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def resolve(
        self,
        category_id: UUID,
        subcategory_id: Optional[UUID] = None,
        department: Optional[str] = None,
        priority: Optional[str] = None,
        assignee_id: Optional[UUID] = None,
    ) -> AssignmentResult:
        rules = await self.get_candidate_rules(category_id, subcategory_id)
        rule, score = select_rule(rules, category_id, subcategory_id)

        subcategory_department = None
        if subcategory_id is not None:
            subcategory = await self.session.get(Subcategory, subcategory_id)
            if subcategory is not None:
                subcategory_department = subcategory.default_department

        category_department = None
        category = await self.session.get(Category, category_id)
        if category is not None:
            category_department = category.default_department

        result = resolve_assignment(
            rule,
            department=department,
            priority=priority,
            assignee_id=assignee_id,
            subcategory_department=subcategory_department,
            category_department=category_department,
            score=score,
        )

        if rule is not None:
            logger.info(f"Assignment rule '{rule.name}' matched with score {score}")
        else:
            logger.debug(f"No assignment rule for category {category_id}, subcategory {subcategory_id}")

        return result
