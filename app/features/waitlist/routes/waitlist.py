from typing import AsyncGenerator

from fastapi import APIRouter, Depends, status

from app.features.waitlist.schemas.waitlist import ErrorOut, WaitlistIn, WaitlistOut
from app.features.waitlist.services.directory import LoopsDirectoryClient
from app.features.waitlist.services.waitlist import SignupOrchestrator, WaitlistConfig
from app.platform.config import settings
from app.platform.response import api_response

router = APIRouter()


def get_waitlist_config() -> WaitlistConfig:
    return WaitlistConfig.from_settings(settings)


async def get_orchestrator(
    config: WaitlistConfig = Depends(get_waitlist_config),
) -> AsyncGenerator[SignupOrchestrator, None]:
    async with LoopsDirectoryClient(
        config.api_url, config.api_key, timeout=config.timeout
    ) as directory:
        yield SignupOrchestrator(config, directory)


@router.post(
    "/api/waitlist",
    tags=["waitlist"],
    response_model=WaitlistOut,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorOut},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorOut},
    },
)
async def join_waitlist(
    waitlist_in: WaitlistIn, orchestrator: SignupOrchestrator = Depends(get_orchestrator)
):
    result = await orchestrator.signup(waitlist_in.email, waitlist_in.referred_by)

    return api_response(
        data=WaitlistOut(
            referral_code=result.referral_code,
            referral_link=result.referral_link,
            already_signed_up=result.already_signed_up,
        ),
        status_code=status.HTTP_200_OK,
    )
