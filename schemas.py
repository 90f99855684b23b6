"""
Database Schemas for Samadhan Setu

Each Pydantic model represents a MongoDB collection.
Collection name = lowercase of class name (User -> "user", Report -> "report").
created_date / updated_date / created_by are stamped by the store helpers.
"""

from typing import List, Literal, Optional, get_args

from pydantic import BaseModel, EmailStr, Field

ReportCategory = Literal[
    'pothole', 'streetlight', 'trash', 'water_leak', 'graffiti',
    'traffic_signal', 'sidewalk', 'noise', 'other',
]
ReportStatus = Literal['submitted', 'acknowledged', 'assigned', 'in_progress', 'resolved', 'closed']
Priority = Literal['low', 'medium', 'high', 'urgent']
DonationStatus = Literal['pending', 'completed', 'failed', 'refunded']
PaymentMethod = Literal['upi', 'card', 'netbanking', 'wallet']
CauseType = Literal['ngo', 'disaster_relief', 'nature_hero']
MediaType = Literal['image', 'video']

REPORT_CATEGORIES = list(get_args(ReportCategory))
PRIORITIES = list(get_args(Priority))


class User(BaseModel):
    email: EmailStr = Field(..., description="Email address")
    full_name: str = Field('', description="Full name")
    role: Literal['admin', 'user'] = Field('user', description="Role of the account")
    phone_number: Optional[str] = Field('', description="Contact phone")
    address: Optional[str] = Field('', description="Postal address")
    avatar_url: Optional[str] = Field('', description="Avatar image URL")
    language: Literal['en', 'hi'] = Field('en', description="Preferred UI language")
    password_hash: str = Field(..., description="Hashed password")
    is_active: bool = Field(True, description="Whether user is active")


class Report(BaseModel):
    title: str = Field(..., description="Short title of the issue")
    description: Optional[str] = Field('', description="Issue description")
    category: ReportCategory = Field(..., description="Issue category")
    status: ReportStatus = Field('submitted')
    priority: Priority = Field('medium')
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field('', description="Nearest address or landmark")
    photo_url: str = Field(..., description="Uploaded photo URL")
    voice_note_url: Optional[str] = Field('', description="Uploaded voice note URL")
    upvotes: int = Field(0)
    resolved_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    assigned_department: Optional[str] = None
    assigned_to: Optional[str] = None
    resolution_notes: Optional[str] = None
    ai_analysis: Optional[dict] = Field(None, description="AI suggestion used to prefill the form")


class Cause(BaseModel):
    name: str
    organization_name: Optional[str] = ''
    description: Optional[str] = ''
    cause_type: CauseType = 'ngo'
    goal_amount: int = Field(0, ge=0)
    raised_amount: int = Field(0, ge=0)
    donor_count: int = Field(0, ge=0)
    urgency: Priority = 'medium'
    is_active: bool = True
    end_date: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None


class Donation(BaseModel):
    amount: int = Field(..., ge=10)
    status: DonationStatus = 'pending'
    cause_id: str
    cause_name: str
    cause_type: CauseType
    payment_method: PaymentMethod
    transaction_id: str
    donor_name: Optional[str] = ''
    donor_email: Optional[str] = ''
    donor_phone: Optional[str] = ''
    anonymous: bool = False
    is_recurring: bool = False
    recurring_frequency: Optional[str] = 'monthly'
    notes: Optional[str] = ''


class Author(BaseModel):
    email: str
    username: str
    fullName: str
    avatar: Optional[str] = None
    isVerified: bool = False
    level: str = "Seedling"
    points: int = 0


class PostContent(BaseModel):
    type: MediaType = 'image'
    url: str
    caption: str


class Engagement(BaseModel):
    likes: int = 0
    comments: int = 0
    shares: int = 0


class Post(BaseModel):
    user: Author
    content: PostContent
    engagement: Engagement = Field(default_factory=Engagement)
    liked_by: List[str] = Field(default_factory=list)
    bookmarked_by: List[str] = Field(default_factory=list)
    location: Optional[str] = ''


class Comment(BaseModel):
    post_id: str
    user: str = Field(..., description="Commenter email")
    user_name: str = ''
    text: str


class Story(BaseModel):
    user: Author
    type: MediaType = 'image'
    url: str
    duration: int = Field(5000, gt=0, description="Display time in ms")


class Conversation(BaseModel):
    participants: List[str]
    names: dict = Field(default_factory=dict, description="email -> display name")


class Message(BaseModel):
    conversation_id: str
    sender: str
    text: str
    read: bool = False


class Notification(BaseModel):
    recipient: str
    type: Literal['comment', 'like', 'report', 'mention', 'system']
    text: str
    icon: str = ''
    read: bool = False


class Herostory(BaseModel):
    title: str
    description: str
    impact: Optional[str] = ''
    location: Optional[str] = ''
    category: Literal['conservation', 'reforestation', 'cleanup', 'education', 'renewable', 'other'] = 'conservation'
    contact_email: Optional[str] = ''
    contact_name: Optional[str] = ''
    image_url: Optional[str] = ''


class Movementmember(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = ''
    location: Optional[str] = ''
    interests: List[Literal['tree_planting', 'cleanup', 'education', 'conservation', 'renewable', 'advocacy']] = Field(default_factory=list)
    skills: Optional[str] = ''
    availability: Literal['weekends', 'evenings', 'flexible', 'full_time'] = 'weekends'
    motivation: Optional[str] = ''
    newsletter: bool = True
    updates: bool = True


class Bugreport(BaseModel):
    subject: str
    description: str
