from msme_passport.schemas.auth import SignupRequest, SignupResponse, LoginRequest, Token
from msme_passport.schemas.user import UserResponse, UserProfileResponse, UserProfileUpdate, UserVerificationStatus
from msme_passport.schemas.collaboration import InvitationCreate, InvitationRespond, InvitationResponse
from msme_passport.schemas.verify import QRVerifyRequest, PublicBusinessSummary
