"""Authentication service layer.

Business logic for account signup, login and logout. Tokens are plain JWT
access tokens; logout revokes them through the redis blocklist.
"""

from sqlmodel import select
from src.auth.models import User
from src.auth.schemas import LoginInput, SignupInput

from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import HTTPException, status, Request, Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import DatabaseError
from src.utils.auth import generate_password_hash, verify_password_hash, create_token, decode_token
from datetime import datetime, timezone, timedelta
import logging
import uuid
from src.db.redis import redis_client


logger = logging.getLogger(__name__)

access_token_expiry = timedelta(hours=24)

class AuthServices:
    """Service class for authentication operations."""

    async def get_user_by_email(self, email: str, session: AsyncSession):
        """Retrieves User by email.

        Args:
            email: User email address, already lower-cased.
            session: Database session.

        Returns:
            User instance if found, None otherwise.
        """
        try:
            statement = select(User).where(User.email == email)
            result = await session.exec(statement)
            return result.first()
        except DatabaseError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Database error during user lookup: {str(e)}"
            )

    async def check_user_exists(self, user_id: str, session: AsyncSession):
        """Rejects tokens whose user no longer exists.

        Args:
            user_id: The token subject, a UUID string.

        Raises:
            HTTPException: If no user has this id.
        """
        try:
            user_uuid = uuid.UUID(str(user_id))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="You are not authorized to proceed"
            )

        statement = select(User).where(User.user_id == user_uuid)
        result = await session.exec(statement)
        user = result.first()

        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="You are not authorized to proceed"
            )
        return user

    async def signup(self, signupInput: SignupInput, session: AsyncSession):
        email_lower = signupInput.email.lower()

        existing_user = await self.get_user_by_email(email_lower, session)
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists"
            )

        new_user = User(
            email=email_lower,
            password_hash=generate_password_hash(signupInput.password)
        )
        session.add(new_user)

        try:
            await session.commit()
            await session.refresh(new_user)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create user"
            )

        logger.info("User %s signed up", new_user.user_id)
        return new_user

    async def login(self, loginInput: LoginInput, session: AsyncSession):
        """Authenticate user and generate an access token.

        Args:
            loginInput: User email and password credentials.
            session: Database session.

        Returns:
            dict: User data with access_token included.

        Raises:
            HTTPException: If credentials are invalid.
        """

        email_lower = loginInput.email.lower()
        user = await self.get_user_by_email(email_lower, session)

        INVALID_CREDENTIALS = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

        if not user:
            raise INVALID_CREDENTIALS

        verified_password = verify_password_hash(loginInput.password, user.password_hash)

        if not verified_password:
            raise INVALID_CREDENTIALS

        user_dict = user.model_dump()
        access_token = create_token(user_dict, access_token_expiry)

        return {
            **user_dict,
            'access_token': access_token,
        }

    async def add_token_to_blocklist(self, token):
        """Revokes token by adding to Redis blocklist.

        Args:
            token: JWT token string to revoke.
        """
        token_decoded = decode_token(token)
        token_id = token_decoded.get('jti')
        exp_timestamp = token_decoded.get('exp')

        # Only blocklist until natural expiry
        current_time = datetime.now(timezone.utc).timestamp()
        time_to_live = int(exp_timestamp - current_time)

        if time_to_live > 0:
            await redis_client.setex(name=token_id, time=time_to_live, value="true")

    async def logout(
            self,
            request: Request,
            response: Response,
            bearer_token: HTTPAuthorizationCredentials,
    ):
        """Revoke the caller's access token and clear the auth cookie.

        Raises:
            HTTPException: If no token is found in the header or cookies.
        """
        if bearer_token:
            access_token = bearer_token.credentials
        else:
            access_token = request.cookies.get("access_token")

        if access_token is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Access token missing"
            )

        await self.add_token_to_blocklist(access_token)

        response.delete_cookie(key="access_token")
