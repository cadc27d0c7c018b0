import uuid

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fedmarket.db.models import (
    Contribution,
    ContributorShare,
    MarketplaceListing,
    ModelNft,
    Task,
    TrainingRound,
    User,
)


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, **kwargs: object) -> User:
        user = User(**kwargs)
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def find_by_email_or_wallet(self, email: str, wallet_address: str) -> User | None:
        stmt = select(User).where(
            or_(User.email == email, User.wallet_address == wallet_address)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_all(self) -> list[User]:
        stmt = select(User).order_by(User.reputation_score.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class TaskRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, **kwargs: object) -> Task:
        task = Task(**kwargs)
        self.session.add(task)
        await self.session.commit()
        await self.session.refresh(task)
        return task

    async def get(self, task_id: uuid.UUID) -> Task | None:
        return await self.session.get(Task, task_id)

    async def list_all(
        self, status: str | None = None, creator_id: uuid.UUID | None = None
    ) -> list[Task]:
        stmt = select(Task)
        if status:
            stmt = stmt.where(Task.status == status)
        if creator_id:
            stmt = stmt.where(Task.creator_id == creator_id)
        stmt = stmt.order_by(Task.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, task_id: uuid.UUID, **kwargs: object) -> Task | None:
        task = await self.get(task_id)
        if not task:
            return None
        self.stage_update(task, **kwargs)
        await self.session.commit()
        await self.session.refresh(task)
        return task

    def stage_update(self, task: Task, **kwargs: object) -> Task:
        """Apply attribute changes without committing; the caller owns the transaction."""
        for key, value in kwargs.items():
            setattr(task, key, value)
        return task


class ContributionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, **kwargs: object) -> Contribution:
        contribution = Contribution(**kwargs)
        self.session.add(contribution)
        await self.session.flush()
        return contribution

    async def create(self, **kwargs: object) -> Contribution:
        contribution = await self.add(**kwargs)
        await self.session.commit()
        await self.session.refresh(contribution)
        return contribution

    async def get_latest(
        self, task_id: uuid.UUID, contributor_id: uuid.UUID
    ) -> Contribution | None:
        stmt = (
            select(Contribution)
            .where(Contribution.task_id == task_id)
            .where(Contribution.contributor_id == contributor_id)
            .order_by(Contribution.round_number.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_all(
        self, task_id: uuid.UUID | None = None, contributor_id: uuid.UUID | None = None
    ) -> list[Contribution]:
        stmt = select(Contribution)
        if task_id:
            stmt = stmt.where(Contribution.task_id == task_id)
        if contributor_id:
            stmt = stmt.where(Contribution.contributor_id == contributor_id)
        stmt = stmt.order_by(Contribution.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class TrainingRoundRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, **kwargs: object) -> TrainingRound:
        training_round = TrainingRound(**kwargs)
        self.session.add(training_round)
        await self.session.flush()
        return training_round

    async def list_for_task(self, task_id: uuid.UUID) -> list[TrainingRound]:
        stmt = (
            select(TrainingRound)
            .where(TrainingRound.task_id == task_id)
            .order_by(TrainingRound.round_number.asc(), TrainingRound.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class ModelNftRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self, shares: list[tuple[uuid.UUID, float]] | None = None, **kwargs: object
    ) -> ModelNft:
        """Mint a model NFT and its contributor shares in one commit."""
        model_nft = ModelNft(**kwargs)
        model_nft.contributor_shares = [
            ContributorShare(contributor_id=contributor_id, share_percentage=percentage)
            for contributor_id, percentage in shares or []
        ]
        self.session.add(model_nft)
        await self.session.commit()
        return model_nft

    async def get(self, model_nft_id: uuid.UUID) -> ModelNft | None:
        return await self.session.get(ModelNft, model_nft_id)

    async def list_all(
        self,
        task_id: uuid.UUID | None = None,
        creator_id: uuid.UUID | None = None,
        current_owner_id: uuid.UUID | None = None,
    ) -> list[ModelNft]:
        stmt = select(ModelNft)
        if task_id:
            stmt = stmt.where(ModelNft.task_id == task_id)
        if creator_id:
            stmt = stmt.where(ModelNft.creator_id == creator_id)
        if current_owner_id:
            stmt = stmt.where(ModelNft.current_owner_id == current_owner_id)
        stmt = stmt.order_by(ModelNft.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class MarketplaceListingRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, model_nft: ModelNft, seller_id: uuid.UUID, price: float) -> MarketplaceListing:
        """Open a listing and mark the NFT as listed at that price."""
        listing = MarketplaceListing(
            model_nft=model_nft, seller_id=seller_id, price=price, status="ACTIVE"
        )
        model_nft.is_listed = True
        model_nft.price = price
        self.session.add(listing)
        await self.session.commit()
        return listing

    async def list_all(
        self, status: str | None = None, seller_id: uuid.UUID | None = None
    ) -> list[MarketplaceListing]:
        stmt = select(MarketplaceListing)
        if status:
            stmt = stmt.where(MarketplaceListing.status == status)
        if seller_id:
            stmt = stmt.where(MarketplaceListing.seller_id == seller_id)
        stmt = stmt.order_by(MarketplaceListing.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
