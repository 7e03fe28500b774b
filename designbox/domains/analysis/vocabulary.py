"""
Analysis Vocabulary - Curated term lists for dimension and intent detection.

Each dimension maps a canonical value to the surface forms that signal it.
Dictionary order is significant: the first canonical value with a matching
surface form wins.
"""

from __future__ import annotations

import re

STOP_WORDS = frozenset(
    {
        # Chinese
        "的", "了", "是", "在", "我", "有", "和", "就", "不", "人", "都", "一", "一个",
        "上", "也", "很", "到", "说", "要", "去", "你", "会", "着", "没有", "看", "好",
        "自己", "这", "那", "里", "为", "么", "什么", "怎么", "给", "找", "想", "能",
        "可以", "帮", "帮我", "请", "推荐", "一些", "几个",
        # English
        "a", "an", "the", "of", "for", "and", "or", "to", "in", "on", "with", "i", "me",
        "my", "some", "any", "please", "want", "need", "find", "show", "give",
    }
)

INDUSTRY_TERMS: dict[str, tuple[str, ...]] = {
    "医疗": ("医疗", "医院", "健康", "医药", "诊所", "医生", "护理", "medical", "healthcare", "health"),
    "金融": ("金融", "银行", "保险", "理财", "投资", "证券", "基金", "finance", "fintech", "bank"),
    "教育": ("教育", "学校", "培训", "课程", "在线教育", "education", "school"),
    "电商": ("电商", "购物", "商城", "零售", "店铺", "淘宝", "京东", "ecommerce", "shop"),
    "SaaS": ("SaaS", "企业", "办公", "B2B", "管理系统", "CRM", "ERP"),
    "科技": ("科技", "技术", "AI", "人工智能", "大数据", "云计算"),
    "游戏": ("游戏", "game", "gaming", "电竞", "娱乐"),
    "社交": ("社交", "社区", "聊天", "即时通讯", "social"),
    "餐饮": ("餐饮", "美食", "外卖", "餐厅", "食品", "food", "restaurant"),
    "旅游": ("旅游", "酒店", "出行", "景点", "机票", "travel", "hotel"),
}

STYLE_TERMS: dict[str, tuple[str, ...]] = {
    "极简": ("极简", "简约", "简洁", "minimal", "minimalist", "留白"),
    "3D": ("3D", "立体", "三维", "渲染"),
    "扁平": ("扁平", "flat", "平面"),
    "手绘": ("手绘", "手写", "涂鸦", "hand-drawn"),
    "渐变": ("渐变", "gradient", "彩虹"),
    "玻璃拟态": ("玻璃拟态", "玻璃", "glass", "glassmorphism", "毛玻璃"),
    "新拟态": ("新拟态", "neumorphism", "软UI"),
    "暗黑": ("暗黑", "dark", "深色", "黑暗模式"),
    "明亮": ("明亮", "light", "浅色"),
    "复古": ("复古", "retro", "vintage", "怀旧"),
    "现代": ("现代", "modern", "时尚", "潮流"),
    "科技感": ("科技感", "tech", "未来", "赛博朋克", "cyberpunk"),
}

TYPE_TERMS: dict[str, tuple[str, ...]] = {
    "网站": ("网站", "官网", "主页", "网页", "website", "web"),
    "图标": ("图标", "图标集", "icon", "icons"),
    "APP": ("APP", "应用", "移动端", "mobile", "手机"),
    "后台": ("后台", "管理后台", "admin", "dashboard", "仪表盘"),
    "落地页": ("落地页", "landing page", "landing", "着陆页"),
    "插画": ("插画", "illustration", "绘画"),
    "UI套件": ("UI套件", "UI kit", "组件库", "设计系统"),
    "字体": ("字体", "font", "fonts", "typeface"),
    "配色": ("配色", "调色板", "palette", "色卡"),
}

COLOR_TERMS: dict[str, tuple[str, ...]] = {
    "红色": ("红色", "红", "red", "朱红", "玫红"),
    "蓝色": ("蓝色", "蓝", "blue", "天蓝", "深蓝", "海蓝"),
    "绿色": ("绿色", "绿", "green", "翠绿", "草绿"),
    "黄色": ("黄色", "黄", "yellow", "金色", "橙黄"),
    "紫色": ("紫色", "紫", "purple", "紫罗兰"),
    "橙色": ("橙色", "橙", "orange"),
    "黑色": ("黑色", "黑", "black"),
    "白色": ("白色", "白", "white"),
    "粉色": ("粉色", "粉", "pink", "粉红"),
    "灰色": ("灰色", "灰", "gray", "grey"),
}

DIMENSION_TERMS: dict[str, dict[str, tuple[str, ...]]] = {
    "industry": INDUSTRY_TERMS,
    "style": STYLE_TERMS,
    "type": TYPE_TERMS,
    "color": COLOR_TERMS,
}

# Every surface form, longest first, for greedy CJK segmentation
SEGMENTATION_TERMS: tuple[str, ...] = tuple(
    sorted(
        {term for table in DIMENSION_TERMS.values() for terms in table.values() for term in terms},
        key=lambda term: (-len(term), term),
    )
)

CORRECTION_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^不是", r"^不要", r"^不对", r"^换个", r"^换一", r"^重新", r"^别", r"^除了",
        r"^排除", r"^不包括", r"不是这个", r"不喜欢", r"换成", r"改成",
        r"^no\b", r"^not\b", r"\binstead\b", r"\bchange (it )?to\b", r"\bswitch to\b",
        r"\bsomething else\b", r"\bother than\b", r"\bexcept\b",
    )
]

INSPIRATION_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"灵感", r"推荐", r"看看", r"有什么", r"有哪些", r"随便", r"都行", r"热门", r"流行",
        r"最新", r"好的", r"优秀", r"精品", r"经典",
        r"\brecommend", r"\bwhat'?s good\b", r"\bgive me (some )?ideas\b", r"\binspir",
        r"\bsuggest", r"\bpopular\b", r"\btrending\b",
    )
]

QUESTION_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"[?？]$", r"吗$", r"^(怎么|怎样|如何|为什么|为何)", r"区别", r"哪个好", r"是否",
        r"^(how|what|why|which|is|are|can|does|do)\b",
    )
]
