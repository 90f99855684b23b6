"""Static directory content served as-is: Nature Heroes, release notes, form options."""

NATURE_HEROES = [
    {
        "id": 1,
        "name": "Mike Pandey",
        "organization": "Earth Matters Foundation",
        "image": "https://qtrypzzcjebvfcihiynt.supabase.co/storage/v1/object/public/base44-prod/public/68ce240c9bce2aae0963ec8a/48240f673_WhatsAppImage2025-09-20at101847.jpeg",
        "description": "Earth Matters Foundation is a Delhi-based non-profit trust working towards conservation of natural resources, environment, and wildlife conservation, while raising awareness through powerful films.",
        "achievements": [
            "Shores of Silence - Whale Sharks in India",
            "Vanishing Vultures",
            "Timeless Traveler - The Horseshoe Crab",
            "Multiple award-winning environmental documentaries",
        ],
        "impact": "Their hard-hitting films have made significant differences and proven to act as powerful catalysts in bringing about instrumental environmental changes.",
        "website": "https://earthmattersfoundation.org",
        "category": "Filmmaker & Conservationist",
    },
    {
        "id": 2,
        "name": "Sunderlal Bahuguna",
        "organization": "Chipko Movement",
        "image": "https://images.unsplash.com/photo-1582750433449-648ed127bb54?w=400&h=400&fit=crop",
        "description": "A legendary environmentalist who led the Chipko movement, advocating for forest conservation and sustainable development in the Himalayas.",
        "achievements": [
            "Led the historic Chipko Movement",
            "Padma Vibhushan recipient",
            "Lifelong advocate for forest conservation",
            "Pioneer of environmental activism in India",
        ],
        "impact": "His movement saved thousands of trees and inspired global environmental movements, proving that grassroots action can create massive change.",
        "category": "Environmental Activist",
    },
    {
        "id": 3,
        "name": "Vandana Shiva",
        "organization": "Navdanya",
        "image": "https://images.unsplash.com/photo-1594736797933-d0d3c31b1b66?w=400&h=400&fit=crop",
        "description": "An environmental activist and food sovereignty advocate, founder of Navdanya, promoting biodiversity conservation and organic farming.",
        "achievements": [
            "Founded Navdanya movement",
            "Author of 20+ books on ecology",
            "Right Livelihood Award winner",
            "Global advocate for seed sovereignty",
        ],
        "impact": "Has established over 150 community seed banks across India and trained over 500,000 farmers in sustainable agriculture practices.",
        "category": "Food Sovereignty Advocate",
    },
]

WHATS_NEW = [
    {"date": "September 20, 2025", "title": "Chat & Stories Live!", "version": "2.0",
     "description": "Connect with fellow eco-warriors with our new Chat feature and share your moments with Stories."},
    {"date": "September 15, 2025", "title": "Donation Platform Launched", "version": "1.5",
     "description": "You can now support causes, disaster relief, and nature heroes directly through the app."},
    {"date": "September 10, 2025", "title": "EcoVoice is Here!", "version": "1.2",
     "description": "A dedicated social feed to share and celebrate positive environmental actions."},
]

INTEREST_OPTIONS = [
    {"id": "tree_planting", "label": "Tree Planting"},
    {"id": "cleanup", "label": "Environmental Cleanup"},
    {"id": "education", "label": "Environmental Education"},
    {"id": "conservation", "label": "Wildlife Conservation"},
    {"id": "renewable", "label": "Renewable Energy"},
    {"id": "advocacy", "label": "Environmental Advocacy"},
]

NOTIFICATION_ICONS = {
    "comment": "💬",
    "like": "❤️",
    "report": "🚧",
    "mention": "👤",
    "system": "🎉",
}
