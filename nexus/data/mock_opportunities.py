"""Bundled opportunity feed served when the live feed is unavailable."""

MOCK_OPPORTUNITIES: list[dict] = [
    {
        "project_name": "Mindanao Railway Project - Phase 1",
        "country": "Philippines",
        "sector": "Digital Infrastructure",
        "value": "$1.5 Billion",
        "summary": (
            "First 102 km segment of the Mindanao Railway, including modern "
            "signalling and communication systems, to lift regional trade."
        ),
        "source_url": "https://www.mdapress.com.ph/",
        "ai_feasibility_score": 85,
        "ai_risk_assessment": (
            "Strong local and national backing. Land acquisition delays and "
            "localised security concerns are the main risks."
        ),
    },
    {
        "project_name": "National Semiconductor Strategy Implementation",
        "country": "United Kingdom",
        "sector": "Advanced Manufacturing & Robotics",
        "value": "£1 Billion Fund",
        "summary": (
            "Government programme for compound semiconductor R&D and advanced "
            "packaging, aimed at private co-investment and supply chain resilience."
        ),
        "source_url": "https://www.gov.uk/government/publications/national-semiconductor-strategy",
        "ai_feasibility_score": 78,
        "ai_risk_assessment": (
            "Deep IP and research base, but heavy global competition and a "
            "dependence on scarce specialist talent."
        ),
    },
    {
        "project_name": "Green Hydrogen Development Program",
        "country": "Chile",
        "sector": "Clean Technology & Renewable Energy",
        "value": "$50 Million Initial Grant",
        "summary": (
            "Solar-powered green hydrogen production seeking partners for "
            "electrolysis, storage and export corridors."
        ),
        "source_url": "https://www.investchile.gob.cl/",
        "ai_feasibility_score": 92,
        "ai_risk_assessment": (
            "Exceptional solar resource and supportive regulation. Global "
            "hydrogen demand is still maturing."
        ),
    },
    {
        "project_name": "Kenya National Digital Master Plan 2022-2032",
        "country": "Kenya",
        "sector": "Digital Infrastructure (Data Centers, 5G)",
        "value": "$500 Million",
        "summary": (
            "Rural fibre expansion, regional data centres and digitised "
            "government services, delivered through PPPs."
        ),
        "source_url": "https://www.ict.go.ke/",
        "ai_feasibility_score": 75,
        "ai_risk_assessment": (
            "High mobile penetration and a growing digital economy. Foreign "
            "investment rules and cybersecurity capacity are open risks."
        ),
    },
    {
        "project_name": "Vietnam AgriTech Transformation Initiative",
        "country": "Vietnam",
        "sector": "Agriculture & Aquaculture Technology (AgriTech)",
        "value": "$300 Million (World Bank Loan)",
        "summary": (
            "Precision farming, IoT water management and supply chain "
            "traceability across the agricultural sector."
        ),
        "source_url": "https://www.worldbank.org/en/country/vietnam",
        "ai_feasibility_score": 88,
        "ai_risk_assessment": (
            "Large established sector with government support. Fragmented "
            "land ownership slows adoption."
        ),
    },
    {
        "project_name": "Canadian Critical Minerals Infrastructure Fund",
        "country": "Canada",
        "sector": "Critical Minerals & Rare Earth Elements",
        "value": "$1.5 Billion CAD",
        "summary": (
            "Energy and transport infrastructure to open critical mineral "
            "deposits in northern and remote regions."
        ),
        "source_url": "https://www.canada.ca/en/natural-resources-canada.html",
        "ai_feasibility_score": 82,
        "ai_risk_assessment": (
            "Stable environment and large resources. Remote logistics costs "
            "and Indigenous consultation are critical."
        ),
    },
]
